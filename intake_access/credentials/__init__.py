"""Credential value type, stores and issuer."""

from .issuer import CredentialIssuer
from .store import CredentialStore, FileCredentialStore, MemoryCredentialStore
from .types import Credential

__all__ = [
    "Credential",
    "CredentialIssuer",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
]
