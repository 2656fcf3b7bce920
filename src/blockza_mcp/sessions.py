"""
Session registry for the JSON-RPC transport.

Owned by the FastAPI app (``app.state.sessions``). Sessions are added on
``initialize`` and removed when the client sends ``DELETE /mcp``; handlers
never touch it.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class Session:
    session_id: str
    client_info: Dict[str, Any] = field(default_factory=dict)
    protocol_version: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionRegistry:
    """In-memory map of session id to Session."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create(self, client_info: Optional[Dict[str, Any]] = None, protocol_version: Optional[str] = None) -> Session:
        session = Session(
            session_id=str(uuid.uuid4()),
            client_info=client_info or {},
            protocol_version=protocol_version,
        )
        self._sessions[session.session_id] = session
        logger.info(f"Session initialized with ID: {session.session_id}")
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def close(self, session_id: Optional[str]) -> bool:
        if session_id and self._sessions.pop(session_id, None) is not None:
            logger.info(f"Session closed, removed {session_id} from registry")
            return True
        return False

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
