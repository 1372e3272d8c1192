# backend/lineup/schemas.py

from pydantic import BaseModel, constr
from typing import Optional
from datetime import datetime
from uuid import UUID

# -------------------------------
# Session user (never persisted)
# -------------------------------
class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    provider: str

class MeOut(BaseModel):
    user: SessionUser
    is_admin: bool
    pending_request: bool

# -------------------------------
# Player Schemas
# -------------------------------
class PlayerBase(BaseModel):
    name: str

class PlayerCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)

class PlayerOut(PlayerBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# -------------------------------
# Coach Schemas
# -------------------------------
class CoachBase(BaseModel):
    name: str
    email: str

class CoachOut(CoachBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# -------------------------------
# Coach Request Schemas
# -------------------------------
class CoachRequestOut(CoachBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
