from uuid import uuid4
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Enum as PgEnum, JSON, Text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# --- ENUMS ---

class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"

class CoupleStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"

class RoundStatus(str, Enum):
    """Lifecycle of a conversation round"""
    AWAITING_PARTNER = "awaiting_partner"
    AWAITING_RECOMMENDATION = "awaiting_recommendation"
    MEDIATING = "mediating"  # Claimed by exactly one request calling the mediator
    COMPLETED = "completed"

# --- SQLALCHEMY MODELS ---

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    role = Column(PgEnum(UserRole), default=UserRole.USER, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

class Couple(Base):
    __tablename__ = "couples"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    partner_1_id = Column(String, ForeignKey("users.id"), nullable=False)
    partner_2_id = Column(String, ForeignKey("users.id"), nullable=True)
    invite_code = Column(String, unique=True, nullable=False, index=True)
    status = Column(PgEnum(CoupleStatus), default=CoupleStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    partner_1 = relationship("User", foreign_keys=[partner_1_id])
    partner_2 = relationship("User", foreign_keys=[partner_2_id])
    conversation_rounds = relationship("ConversationRound", back_populates="couple")

class ConversationRound(Base):
    __tablename__ = "conversation_rounds"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    couple_id = Column(String, ForeignKey("couples.id"), nullable=False, index=True)
    message_a = Column(Text, nullable=True)  # partner_1's slot
    message_b = Column(Text, nullable=True)  # partner_2's slot
    recommendation = Column(Text, nullable=True)
    emotion_summary = Column(JSON, nullable=True)
    status = Column(PgEnum(RoundStatus), default=RoundStatus.AWAITING_PARTNER, nullable=False)
    mediation_started_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    couple = relationship("Couple", back_populates="conversation_rounds")
