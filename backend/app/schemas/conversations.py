from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any
from datetime import datetime

from backend.app.models.models import RoundStatus

class SubmissionStatus(str, Enum):
    FILLED = "filled"
    CREATED = "created"

class MessageSubmit(BaseModel):
    couple_id: str
    sender_id: str
    text: str

class MessageSubmitResponse(BaseModel):
    status: SubmissionStatus
    round_id: str
    round_status: RoundStatus
    recommendation: Optional[str] = None
    emotion_summary: Optional[Dict[str, Any]] = None

class MediationRetry(BaseModel):
    couple_id: str

class ConversationRoundResponse(BaseModel):
    id: str
    couple_id: str
    message_a: Optional[str] = None
    message_b: Optional[str] = None
    recommendation: Optional[str] = None
    emotion_summary: Optional[Dict[str, Any]] = None
    status: RoundStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
