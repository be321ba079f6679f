from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any

class MediationRequest(BaseModel):
    # Whitespace-only messages fail min_length once stripped
    model_config = ConfigDict(str_strip_whitespace=True)

    partner1_message: str = Field(..., min_length=1)
    partner2_message: str = Field(..., min_length=1)

class MediationResponse(BaseModel):
    recommendation: str
    emotion_analysis: Optional[Dict[str, Any]] = None
    success: bool = False
    error: Optional[str] = None
    upstream_status: Optional[int] = None
