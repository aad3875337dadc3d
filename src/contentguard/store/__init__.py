# src/contentguard/store/__init__.py
"""
ContentGuard Store Module

플랫폼 자격증명 저장소 (file / redis / memory)
"""

from contentguard.store.credential_store import (
    STORAGE_KEY,
    CredentialStore,
    InMemoryCredentialStore,
    JsonFileCredentialStore,
    RedisCredentialStore,
    create_credential_store,
)

__all__ = [
    "STORAGE_KEY",
    "CredentialStore",
    "InMemoryCredentialStore",
    "JsonFileCredentialStore",
    "RedisCredentialStore",
    "create_credential_store",
]
