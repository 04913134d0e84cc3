"""Client-side storage for the bearer token and cached user object."""

import json
import os
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

SESSION_FILE_MODE = 0o600


class MemoryTokenStore:
    """Token store kept in process memory."""

    def __init__(self, token: Optional[str] = None, user: Optional[dict] = None):
        self._token = token
        self._user = user

    def get_token(self) -> Optional[str]:
        return self._token

    def get_user(self) -> Optional[dict]:
        return self._user

    def save(self, token: str, user: Optional[dict] = None) -> None:
        self._token = token
        self._user = user

    def clear(self) -> None:
        self._token = None
        self._user = None


class FileTokenStore:
    """Token store persisted as a JSON file readable only by the owner.

    The file holds ``{"token": ..., "user": {...}}``. A missing or corrupt
    file reads as an empty session.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("token_store_unreadable", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def get_token(self) -> Optional[str]:
        return self._read().get("token")

    def get_user(self) -> Optional[dict]:
        return self._read().get("user")

    def save(self, token: str, user: Optional[dict] = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SESSION_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({"token": token, "user": user}, f)
        # O_CREAT only applies the mode to new files
        os.chmod(self.path, SESSION_FILE_MODE)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
