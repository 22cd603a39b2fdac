"""Credential stores.

A store holds the current bearer credential. Reads are served from memory and
never block on I/O; writes replace the credential atomically and, for the
file-backed store, persist it so it survives a process restart.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .types import Credential

# Well-known keys in durable storage.
TOKEN_KEY = "access_token"
EXPIRES_AT_KEY = "expires_at"  # epoch milliseconds


@runtime_checkable
class CredentialStore(Protocol):
    def read(self) -> Credential | None: ...
    def write(self, credential: Credential) -> None: ...
    def clear(self) -> None: ...


class MemoryCredentialStore:
    """Process-local credential store without durability."""

    def __init__(self, credential: Credential | None = None) -> None:
        self._lock = threading.Lock()
        self._credential = credential

    def read(self) -> Credential | None:
        with self._lock:
            return self._credential

    def write(self, credential: Credential) -> None:
        if not isinstance(credential, Credential):
            raise TypeError("credential must be a Credential")
        with self._lock:
            self._credential = credential

    def clear(self) -> None:
        with self._lock:
            self._credential = None


def credential_to_record(credential: Credential) -> dict[str, Any]:
    """Serialize a credential to the two-key persisted record."""
    record: dict[str, Any] = {TOKEN_KEY: credential.value}
    if credential.expires_at is not None:
        record[EXPIRES_AT_KEY] = int(credential.expires_at.timestamp() * 1000)
    return record


def credential_from_record(record: Any) -> Credential | None:
    """Parse a persisted record; anything unusable yields None."""
    if not isinstance(record, dict):
        return None
    value = record.get(TOKEN_KEY)
    if not isinstance(value, str) or not value:
        return None
    expires_raw = record.get(EXPIRES_AT_KEY)
    # Browser storage kept the expiry as a stringified integer.
    if isinstance(expires_raw, str) and expires_raw.strip().isdigit():
        expires_raw = int(expires_raw.strip())
    expires_at = None
    if isinstance(expires_raw, int | float) and not isinstance(expires_raw, bool):
        try:
            expires_at = datetime.fromtimestamp(expires_raw / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            expires_at = None
    return Credential(value, expires_at)


class FileCredentialStore(MemoryCredentialStore):
    """Credential store persisted to a small JSON file.

    The file is loaded once at construction. Every ``write``/``clear`` updates
    memory first and then persists; persistence failures are logged and the
    in-memory value stays authoritative for the running process.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = Path(path)
        super().__init__(self._load())
        self._io_lock = threading.Lock()

    def _load(self) -> Credential | None:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logging.warning(
                f"⚠️ Credential file unreadable, starting without credential path={self.path} error={type(e).__name__}"
            )
            return None
        credential = credential_from_record(data)
        if credential is None:
            logging.warning(f"⚠️ Credential file has no usable token path={self.path}")
        else:
            logging.debug(f"📂 Loaded persisted credential path={self.path}")
        return credential

    def write(self, credential: Credential) -> None:
        super().write(credential)
        self._persist(credential_to_record(credential))

    def clear(self) -> None:
        super().clear()
        with self._io_lock:
            try:
                self.path.unlink()
                logging.debug(f"🗑️ Persisted credential removed path={self.path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logging.error(
                    f"💥 Failed removing persisted credential path={self.path} error={type(e).__name__}"
                )

    def _persist(self, record: dict[str, Any]) -> None:
        with self._io_lock:
            try:
                self._atomic_write(record)
            except (OSError, ValueError) as e:
                logging.error(
                    f"💥 Credential persistence failed path={self.path} error={type(e).__name__}"
                )

    def _atomic_write(self, record: dict[str, Any]) -> None:
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                temp_path = tmp.name
                json.dump(record, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
            # Token file is a secret; owner read/write only.
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
            temp_path = None
            logging.debug(f"💾 Credential saved atomically path={self.path}")
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
