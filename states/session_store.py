from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Optional

from states.errors import NoActiveSession


@dataclass
class Session:
    owner_id: Hashable
    step_index: int = 0
    answers: Dict[str, Any] = field(default_factory=dict)


class SessionStore:
    """In-memory map of owner id -> Session for one flow family.

    Nothing here is durable: a restart drops every flow in progress.
    """

    def __init__(self):
        self._sessions: Dict[Hashable, Session] = {}

    def begin(self, owner_id: Hashable) -> Session:
        # last begin() wins, any unfinished session is discarded
        session = Session(owner_id=owner_id)
        self._sessions[owner_id] = session
        return session

    def get(self, owner_id: Hashable) -> Optional[Session]:
        return self._sessions.get(owner_id)

    def advance(self, owner_id: Hashable, key: str, value: Any) -> Session:
        session = self._sessions.get(owner_id)
        if session is None:
            raise NoActiveSession(owner_id)
        session.answers[key] = value
        session.step_index += 1
        return session

    def end(self, owner_id: Hashable) -> None:
        self._sessions.pop(owner_id, None)

    def __contains__(self, owner_id: Hashable) -> bool:
        return owner_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
