"""
User session API endpoints.

Stores lightweight identity records for the front end, keyed by a session id
the caller chooses, plus a single "current user" record.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends

from domo_relay.api.dependencies import get_session_store
from domo_relay.core.exceptions import NotFoundError
from domo_relay.core.schemas.session import (
    CurrentUserUpdate,
    UserSession,
    UserSessionCreate,
    UserSessionDeleted,
    UserSessionEntry,
    UserSessionList,
    UserSessionStored,
    UserSessionUpdate,
)
from domo_relay.core.utils.session_store import SessionStore

router = APIRouter(prefix="/api", tags=["User Sessions"])


@router.post("/user-session", response_model=UserSessionStored)
async def store_user_session(
    payload: UserSessionCreate,
    store: SessionStore = Depends(get_session_store),
):
    """
    Store (or overwrite) a user session.

    Missing userId/userName fall back to the configured default identity.

    Raises:
        ValidationError: If sessionId is missing
    """
    entry = store.put(payload.session_id, payload.user_id, payload.user_name)
    return UserSessionStored(message="User session stored", session=entry)


@router.get("/user-session/{session_id}", response_model=UserSessionEntry)
async def get_user_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    return store.get(session_id)


@router.put("/user-session/{session_id}", response_model=UserSessionStored)
async def update_user_session(
    session_id: str,
    payload: Optional[UserSessionUpdate] = Body(None),
    store: SessionStore = Depends(get_session_store),
):
    """Upsert a session identified by the path; same semantics as POST."""
    payload = payload or UserSessionUpdate()
    entry = store.put(session_id, payload.user_id, payload.user_name)
    return UserSessionStored(message="User session updated", session=entry)


@router.delete("/user-session/{session_id}", response_model=UserSessionDeleted)
async def delete_user_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    if not store.delete(session_id):
        raise NotFoundError("Session not found", details={"sessionId": session_id})
    return UserSessionDeleted(message="User session deleted")


@router.get("/user-sessions", response_model=UserSessionList)
async def list_user_sessions(store: SessionStore = Depends(get_session_store)):
    """List every live session with its age in seconds."""
    sessions = store.list_all()
    return UserSessionList(count=len(sessions), sessions=sessions)


@router.get("/user-data", response_model=UserSession)
async def get_user_data(store: SessionStore = Depends(get_session_store)):
    return store.get_current_user()


@router.post("/user-data", response_model=UserSession)
async def set_user_data(
    payload: Optional[CurrentUserUpdate] = Body(None),
    store: SessionStore = Depends(get_session_store),
):
    payload = payload or CurrentUserUpdate()
    return store.set_current_user(payload.user_id, payload.user_name)
