"""
Progress and session stores.

ProgressStore keeps the latest progress snapshot per session for external
observers (UI polling, the CLI). The generation pipeline only ever writes to
it, through ``post_progress``, which never lets a store failure escape.

SessionStore keeps the resumable intake state of a session: the current
intake step and the answers given so far.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..core.logging import get_logger
from ..models.generation import ProgressSnapshot, SessionStatus
from .interface import StorageBackend, session_key

logger = get_logger(__name__)

PROGRESS_RECORD = "progress.json"
STATE_RECORD = "state.json"


class ProgressStore(ABC):
    """Latest-snapshot store keyed by session identifier."""

    @abstractmethod
    async def post(self, session_id: str, snapshot: ProgressSnapshot) -> None:
        """Record a snapshot, replacing the previous one for the session."""
        ...

    @abstractmethod
    async def get(self, session_id: str) -> ProgressSnapshot | None:
        """The last snapshot posted for a session, if any."""
        ...


class InMemoryProgressStore(ProgressStore):
    """Process-local progress store.

    Keeps every snapshot posted per session, in order, alongside the latest one.
    """

    def __init__(self) -> None:
        self._history: dict[str, list[ProgressSnapshot]] = defaultdict(list)

    async def post(self, session_id: str, snapshot: ProgressSnapshot) -> None:
        self._history[session_id].append(snapshot)

    async def get(self, session_id: str) -> ProgressSnapshot | None:
        history = self._history.get(session_id)
        return history[-1] if history else None

    def history(self, session_id: str) -> list[ProgressSnapshot]:
        return list(self._history.get(session_id, []))

    def clear(self, session_id: str) -> None:
        self._history.pop(session_id, None)


class StorageProgressStore(ProgressStore):
    """Progress store persisted as ``sessions/{id}/progress.json``."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def post(self, session_id: str, snapshot: ProgressSnapshot) -> None:
        await self.storage.put_model(session_key(session_id, PROGRESS_RECORD), snapshot)

    async def get(self, session_id: str) -> ProgressSnapshot | None:
        try:
            return await self.storage.get_model(session_key(session_id, PROGRESS_RECORD), ProgressSnapshot)
        except FileNotFoundError:
            return None


async def post_progress(
    store: ProgressStore,
    session_id: str,
    phase: str,
    progress: float,
    status: SessionStatus,
    result: dict[str, Any] | None = None,
) -> None:
    """Post a snapshot without letting a store failure reach the caller."""
    snapshot = ProgressSnapshot(
        phase=phase,
        progress=min(max(progress, 0.0), 100.0),
        status=status,
        result=result,
    )
    try:
        await store.post(session_id, snapshot)
    except Exception as e:
        logger.warning(
            "Progress update failed",
            session_id=session_id,
            phase=phase,
            error=str(e),
        )


IntakeStep = Literal["functional", "style", "llm", "build", "review"]


class SessionState(BaseModel):
    """Resumable intake state of one session."""

    agent_id: str
    user_id: str | None = None
    step: IntakeStep = "functional"
    answers: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class SessionStore:
    """Session state persisted as ``sessions/{id}/state.json``.

    Updates are merge-upserts: top-level fields given in the update replace the
    stored ones, and ``answers`` are merged key by key.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_session(self, agent_id: str) -> SessionState | None:
        try:
            return await self.storage.get_model(session_key(agent_id, STATE_RECORD), SessionState)
        except FileNotFoundError:
            return None

    async def update_session(
        self,
        agent_id: str,
        *,
        user_id: str | None = None,
        step: IntakeStep | None = None,
        answers: dict[str, Any] | None = None,
    ) -> SessionState:
        """Create or update the state of a session.

        Args:
            agent_id: Session identifier.
            user_id: Owner of the session, if known.
            step: Intake step the session has reached.
            answers: Answers to merge into the stored ones.

        Returns:
            The state as stored after the update.
        """
        async with self._locks[agent_id]:
            state = await self.get_session(agent_id) or SessionState(agent_id=agent_id)
            changes: dict[str, Any] = {
                "answers": {**state.answers, **(answers or {})},
                "updated_at": datetime.utcnow(),
            }
            if user_id is not None:
                changes["user_id"] = user_id
            if step is not None:
                changes["step"] = step
            state = state.model_copy(update=changes)

            await self.storage.put_model(session_key(agent_id, STATE_RECORD), state)
            logger.debug("Session state updated", agent_id=agent_id, step=state.step)
            return state

    async def clear_session(self, agent_id: str) -> bool:
        """Remove the stored state of a session.

        Returns:
            True if a state was stored.
        """
        async with self._locks[agent_id]:
            return await self.storage.delete(session_key(agent_id, STATE_RECORD))
