from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional
from datetime import datetime

from backend.app.models.models import UserRole

class UserCreate(BaseModel):
    email: EmailStr
    first_name: Optional[str] = Field(None, min_length=1)  # This enforces non-empty strings
    last_name: Optional[str] = Field(None, min_length=1)

class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserRoleUpdate(BaseModel):
    role: UserRole

class UserResponse(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
