"""Local user session: who is signed in, plus session-scoped storage."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .storage import SessionStorage

logger = logging.getLogger(__name__)


class UserSession:
    """Holds the signed-in user identity.

    The identity is an opaque string persisted in a small JSON file so it
    survives between CLI invocations. Session storage lives in memory and
    ends with the session.
    """

    def __init__(self, path: str | Path = "~/.config/freshtrack/session.json") -> None:
        self._path = Path(path).expanduser()
        self.storage = SessionStorage()

    def current_user(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable session file %s: %s", self._path, e)
            return None
        user_id = data.get("user_id") if isinstance(data, dict) else None
        return user_id if isinstance(user_id, str) and user_id else None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    def sign_in(self, user_id: str) -> None:
        user_id = user_id.strip()
        if not user_id:
            raise ValueError("User ID must not be empty")
        if self.current_user() not in (None, user_id):
            self.storage.clear()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"user_id": user_id}), encoding="utf-8")
        logger.info("Signed in as %s", user_id)

    def sign_out(self) -> None:
        self.storage.clear()
        if self._path.exists():
            self._path.unlink()
        logger.info("Signed out")
