from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from backend.app.models.models import CoupleStatus

class CoupleCreate(BaseModel):
    partner_1_id: str

class CoupleJoin(BaseModel):
    user_id: str
    invite_code: str = Field(..., min_length=1)

class InviteCodeRegenerate(BaseModel):
    user_id: str

class CoupleResponse(BaseModel):
    id: str
    partner_1_id: str
    partner_2_id: Optional[str] = None
    invite_code: str
    status: CoupleStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CoupleStatistics(BaseModel):
    couple_id: str
    total_rounds: int
    completed_rounds: int
    awaiting_partner_rounds: int
    awaiting_recommendation_rounds: int
    aligned_rounds: int
    conflicted_rounds: int
    last_activity_at: Optional[datetime] = None
