"""User session schemas."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema using camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserSession(CamelModel):
    """Identity record stored against a session id"""

    user_id: str
    user_name: str
    timestamp: float = Field(..., description="Last store/update time, epoch seconds")


class UserSessionEntry(UserSession):
    """Session record as returned by lookups and listings"""

    session_id: str
    age_seconds: Optional[float] = Field(None, description="Seconds since the last update")


class UserSessionCreate(CamelModel):
    """Schema for storing a session"""

    session_id: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None


class UserSessionUpdate(CamelModel):
    """Schema for updating a session identified in the path"""

    user_id: Optional[str] = None
    user_name: Optional[str] = None


class UserSessionStored(CamelModel):
    success: bool = True
    message: str
    session: UserSessionEntry


class UserSessionDeleted(CamelModel):
    success: bool = True
    message: str


class UserSessionList(CamelModel):
    count: int
    sessions: List[UserSessionEntry]


class CurrentUserUpdate(CamelModel):
    user_id: Optional[str] = None
    user_name: Optional[str] = None
