# backend/lineup/models.py

from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from lineup.db import Base

# -------------------------------
# Players
# -------------------------------
class Player(Base):
    __tablename__ = "players"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# -------------------------------
# Coaches (admins)
# -------------------------------
class Coach(Base):
    __tablename__ = "coaches"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# -------------------------------
# Coach access requests
# -------------------------------
class CoachRequest(Base):
    __tablename__ = "coach_requests"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# -------------------------------
# Signed-out session tokens
# -------------------------------
class RevokedSession(Base):
    __tablename__ = "revoked_sessions"
    jti = Column(String, primary_key=True)
    revoked_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), index=True)
