from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

from states.errors import CompletionFailure, NoActiveSession, ValidationFailure
from states.flow import Flow
from states.session_store import SessionStore

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[Hashable, Dict[str, Any]], Awaitable[Any]]


@dataclass
class Reply:
    """Outcome of one submitted answer.

    ``handled`` is False when the owner had no flow in progress, so the caller
    can offer the message to other handlers. ``text`` is the next prompt, or the
    validation error followed by the prompt of the same step. It is empty once the
    flow is complete, and ``result`` then holds what the completion handler returned.
    """

    handled: bool
    complete: bool = False
    text: str = ""
    answers: Dict[str, Any] = field(default_factory=dict)
    result: Any = None


def _plain_error(reason: str) -> str:
    return reason


class ConversationEngine:
    """Drives sessions of one SessionStore through one Flow.

    Calls for the same owner are serialized with a per-owner lock, so two
    updates from one user never validate against the same step.
    """

    def __init__(
        self,
        flow: Flow,
        store: SessionStore,
        on_complete: CompletionHandler,
        format_error: Callable[[str], str] = _plain_error,
    ):
        self.flow = flow
        self.store = store
        self.on_complete = on_complete
        self.format_error = format_error
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._lock_users: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def _owner_lock(self, owner_id: Hashable):
        """Per-owner lock, dropped once nobody holds or waits for it."""
        lock = self._locks.setdefault(owner_id, asyncio.Lock())
        self._lock_users[owner_id] = self._lock_users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[owner_id] -= 1
            if not self._lock_users[owner_id]:
                del self._lock_users[owner_id]
                del self._locks[owner_id]

    def is_active(self, owner_id: Hashable) -> bool:
        return owner_id in self.store

    def current_prompt(self, owner_id: Hashable) -> Optional[str]:
        session = self.store.get(owner_id)
        if session is None:
            return None
        return self.flow[session.step_index].prompt

    async def start(self, owner_id: Hashable) -> str:
        async with self._owner_lock(owner_id):
            self.store.begin(owner_id)
            logger.info("Flow %s started for %s", self.flow.name, owner_id)
            return self.flow[0].prompt

    async def cancel(self, owner_id: Hashable) -> bool:
        async with self._owner_lock(owner_id):
            existed = owner_id in self.store
            self.store.end(owner_id)
            if existed:
                logger.info("Flow %s cancelled for %s", self.flow.name, owner_id)
            return existed

    async def submit(self, owner_id: Hashable, raw_input: str) -> Reply:
        async with self._owner_lock(owner_id):
            session = self.store.get(owner_id)
            if session is None:
                return Reply(handled=False)

            step = self.flow[session.step_index]
            try:
                value = step.validator(raw_input or "")
            except ValidationFailure as exc:
                # same step again, error first
                return Reply(handled=True, text=f"{self.format_error(exc.message)}\n\n{step.prompt}")

            try:
                session = self.store.advance(owner_id, step.key, value)
            except NoActiveSession:
                return Reply(handled=False)

            if session.step_index < self.flow.total_steps:
                return Reply(handled=True, text=self.flow[session.step_index].prompt)

            answers = dict(session.answers)
            try:
                result = await self.on_complete(owner_id, answers)
            except Exception as exc:
                logger.exception("Flow %s: completion failed for %s, answers dropped", self.flow.name, owner_id)
                raise CompletionFailure(self.flow.name, owner_id) from exc
            finally:
                self.store.end(owner_id)

            logger.info("Flow %s completed for %s", self.flow.name, owner_id)
            return Reply(handled=True, complete=True, answers=answers, result=result)
