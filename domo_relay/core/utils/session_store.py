"""In-memory user session storage.

Maps caller-supplied session ids to lightweight identity records. Nothing is
persisted; records are dropped by an hourly sweep once they are older than
the TTL. A separate "current user" record lives alongside the map and is
never swept.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from domo_relay.core.exceptions import NotFoundError, ValidationError
from domo_relay.core.schemas.session import UserSession, UserSessionEntry

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "123"
DEFAULT_USER_NAME = "Deepak Yadav"
ONE_HOUR_SECONDS = 3600


class SessionStore:
    def __init__(
        self,
        ttl_seconds: float = ONE_HOUR_SECONDS,
        sweep_interval_seconds: float = ONE_HOUR_SECONDS,
        default_user_id: str = DEFAULT_USER_ID,
        default_user_name: str = DEFAULT_USER_NAME,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            ttl_seconds: Age after which a session is removed by the sweep
            sweep_interval_seconds: Delay between sweeps
            default_user_id: Identity used when a caller omits userId
            default_user_name: Identity used when a caller omits userName
            clock: Source of epoch-second timestamps
        """
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self.default_user_id = default_user_id
        self.default_user_name = default_user_name
        self._clock = clock
        self._sessions: Dict[str, UserSession] = {}
        self._current_user = self._make_record(None, None)
        self._sweep_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _make_record(self, user_id: Optional[str], user_name: Optional[str]) -> UserSession:
        return UserSession(
            user_id=user_id or self.default_user_id,
            user_name=user_name or self.default_user_name,
            timestamp=self._clock(),
        )

    def _entry(self, session_id: str, record: UserSession, now: Optional[float] = None) -> UserSessionEntry:
        age = None if now is None else max(0.0, now - record.timestamp)
        return UserSessionEntry(session_id=session_id, age_seconds=age, **record.model_dump())

    def put(
        self,
        session_id: Optional[str],
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> UserSessionEntry:
        """Create or overwrite the record for ``session_id``.

        Raises:
            ValidationError: If ``session_id`` is empty
        """
        if not session_id:
            raise ValidationError("sessionId is required")
        record = self._make_record(user_id, user_name)
        self._sessions[session_id] = record
        logger.debug(f"Stored user session {session_id} for user {record.user_id}")
        return self._entry(session_id, record)

    def get(self, session_id: str) -> UserSessionEntry:
        """Return the record for ``session_id``.

        Raises:
            NotFoundError: If no live record exists
        """
        record = self._sessions.get(session_id)
        if record is None:
            raise NotFoundError("Session not found", details={"sessionId": session_id})
        return self._entry(session_id, record)

    def delete(self, session_id: str) -> bool:
        """Remove ``session_id``; returns whether a record existed."""
        existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.debug(f"Deleted user session {session_id}")
        return existed

    def list_all(self) -> List[UserSessionEntry]:
        """Every live record together with its current age."""
        now = self._clock()
        return [self._entry(sid, record, now) for sid, record in self._sessions.items()]

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop records older than the TTL; returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [
            sid for sid, record in self._sessions.items()
            if now - record.timestamp > self.ttl_seconds
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Session sweep removed {len(expired)} expired sessions")
        return len(expired)

    def get_current_user(self) -> UserSession:
        return self._current_user

    def set_current_user(
        self, user_id: Optional[str] = None, user_name: Optional[str] = None
    ) -> UserSession:
        self._current_user = self._make_record(user_id, user_name)
        return self._current_user

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep task on the running event loop."""
        if self._sweep_task is not None:
            logger.warning("Session sweep already running")
            return
        self._sweep_task = asyncio.create_task(self._run_sweeps())

    async def stop(self) -> None:
        """Cancel the periodic sweep task."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _run_sweeps(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.sweep_interval_seconds)
                try:
                    self.sweep()
                except Exception:
                    logger.exception("Session sweep failed")
        except asyncio.CancelledError:
            logger.debug("Session sweep task cancelled")
            raise
