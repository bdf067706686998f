"""Client-side session: who is signed in and with which token."""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from project_tracker.core.roles import Role

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = Path.home() / ".project_tracker" / "session.json"


@dataclass
class SessionIdentity:
    """Stored identity and tokens"""

    role: Role
    access_token: str
    refresh_token: str | None = None
    user_id: int | None = None
    username: str | None = None
    admin_id: str | None = None


class SessionContext:
    """Current identity, loaded from and persisted to a JSON file.

    One instance is created by the caller and handed to ``TrackerClient``;
    logging out or any 401 response clears it.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else DEFAULT_SESSION_FILE
        self.identity: SessionIdentity | None = None
        self._load()

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None and bool(self.identity.access_token)

    @property
    def role(self) -> Role | None:
        return self.identity.role if self.identity else None

    def login(self, token_response: dict[str, Any]) -> SessionIdentity:
        """Store the identity from a login or registration response."""
        user = token_response.get("user") or {}
        self.identity = SessionIdentity(
            role=Role(user["role"]),
            access_token=token_response["access_token"],
            refresh_token=token_response.get("refresh_token"),
            user_id=user.get("id"),
            username=user.get("username"),
            admin_id=user.get("admin_id"),
        )
        self._save()
        logger.info("Signed in as %s %s", self.identity.role.value, self.identity.username)
        return self.identity

    def clear(self) -> None:
        """Forget the identity in memory and on disk."""
        self.identity = None
        if self.path.exists():
            self.path.unlink()

    def auth_headers(self) -> dict[str, str]:
        if self.is_authenticated:
            return {"Authorization": f"Bearer {self.identity.access_token}"}
        return {}

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
            data["role"] = Role(data["role"])
            self.identity = SessionIdentity(**data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            self.identity = None

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = asdict(self.identity)
        data["role"] = self.identity.role.value
        self.path.write_text(json.dumps(data, indent=2))
        # Tokens are credentials
        os.chmod(self.path, 0o600)
