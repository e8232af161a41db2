"""
storage.py — Local key-value persistence for users, the session and projects.

Three logical namespaces, all stored as serialized JSON text:

  graphico_users_db            → list of every registered User
  graphico_session             → the one logged-in User (or absent)
  graphico_projects_<email>    → that user's Project list

Reads are permissive: missing or corrupt data yields an empty list / None
and a logged warning, never an exception. Writes overwrite the whole value
and are immediately visible to later reads. There is no cross-process
locking; two writers racing on the same file means the last one wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from .errors import StorageReadError
from .models import Project, User

logger = logging.getLogger(__name__)

USERS_KEY = "graphico_users_db"
SESSION_KEY = "graphico_session"
PROJECTS_PREFIX = "graphico_projects_"

_USER_LIST = TypeAdapter(List[User])
_PROJECT_LIST = TypeAdapter(List[Project])
_USER = TypeAdapter(User)


# ── Backing stores ────────────────────────────────────────────────────────────

class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store. Lives as long as the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    All keys in a single JSON object on disk, rewritten atomically on each write.

    An unreadable file is treated as empty (and will be replaced by the next write).
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Store file {self.path} unreadable, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Store file {self.path} is not a JSON object, starting empty")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".store_", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


# ── Gateway ───────────────────────────────────────────────────────────────────

def projects_key(email: str) -> str:
    return f"{PROJECTS_PREFIX}{email}"


class StorageGateway:
    """
    Usage:
        gateway = StorageGateway(JsonFileStore(STORE_FILE))
        user = gateway.register_user(User(name="Sara", email="a@x.com"))
        gateway.save_session(user)
        gateway.save_projects_for(user.email, [project, *older])
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _read(self, key: str, adapter: TypeAdapter):
        """Parse the value under `key`, raising StorageReadError if it is corrupt."""
        raw = self.store.get_item(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            raise StorageReadError(key, f"{e.error_count()} validation error(s)") from e
        except ValueError as e:
            raise StorageReadError(key, str(e)) from e

    def _read_soft(self, key: str, adapter: TypeAdapter, default):
        try:
            value = self._read(key, adapter)
        except StorageReadError as e:
            logger.warning(f"{e}, falling back to default")
            return default
        return default if value is None else value

    # ── Users ─────────────────────────────────────────────────────────────────

    def list_registered_users(self) -> List[User]:
        return self._read_soft(USERS_KEY, _USER_LIST, [])

    def register_user(self, user: User) -> User:
        """Append `user` unless the email is taken; the first stored record always wins."""
        users = self.list_registered_users()
        existing = next((u for u in users if u.email == user.email), None)
        if existing is not None:
            return existing
        users.append(user)
        self.store.set_item(USERS_KEY, _USER_LIST.dump_json(users).decode("utf-8"))
        return user

    def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.list_registered_users() if u.email == email), None)

    # ── Session ───────────────────────────────────────────────────────────────

    def save_session(self, user: User) -> None:
        self.store.set_item(SESSION_KEY, user.model_dump_json())

    def get_session(self) -> Optional[User]:
        return self._read_soft(SESSION_KEY, _USER, None)

    def clear_session(self) -> None:
        self.store.remove_item(SESSION_KEY)

    # ── Projects ──────────────────────────────────────────────────────────────

    def get_projects_for(self, email: str) -> List[Project]:
        return self._read_soft(projects_key(email), _PROJECT_LIST, [])

    def save_projects_for(self, email: str, projects: List[Project]) -> None:
        """Overwrite the user's entire project list."""
        self.store.set_item(
            projects_key(email),
            _PROJECT_LIST.dump_json(list(projects)).decode("utf-8"),
        )
