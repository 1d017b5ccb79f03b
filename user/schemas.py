from typing import Optional
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from .models import UserRole

class UserSchema(BaseModel):
    id: int
    username: str
    display_name: str
    email: Optional[EmailStr] = None
    role: UserRole
    hourly_wage: Optional[int] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=32)
    display_name: str
    email: Optional[EmailStr] = None
    role: UserRole = UserRole.worker
    hourly_wage: Optional[int] = Field(None, ge=0)
    model_config = ConfigDict(extra="forbid")

class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    hourly_wage: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
