"""
Local store for the logged-in session.

The CLI keeps exactly one session on disk. Every command reads it through
AuthStore, login writes it and logout (or any 401 from the server) clears it.
"""

import json
import os
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass
class StoredSession:
    """Bearer token plus the user it was issued to"""
    token: str
    user_id: str
    email: str
    role: str
    username: str = ""
    saved_at: str = ""


class AuthStore:
    """Read/write/clear the credentials file"""

    def __init__(self, path: str):
        self.path = Path(path)

    def read(self) -> Optional[StoredSession]:
        """The stored session, or None when logged out or the file is unreadable"""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            session = StoredSession(**data)
        except (OSError, ValueError, TypeError):
            return None
        if not session.token:
            return None
        return session

    def write(self, session: StoredSession) -> StoredSession:
        if not session.saved_at:
            session.saved_at = datetime.utcnow().isoformat()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(session), indent=2), encoding="utf-8")
        # Owner read/write only
        os.chmod(self.path, 0o600)
        return session

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    @property
    def is_authenticated(self) -> bool:
        return self.read() is not None
