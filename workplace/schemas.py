from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from .models import WorkplaceType

class WorkplaceSchema(BaseModel):
    id: int
    name: str
    type: WorkplaceType
    address: Optional[str] = None
    notes: Optional[str] = None
    manager_id: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)

class WorkplaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: WorkplaceType = WorkplaceType.other
    address: Optional[str] = None
    notes: Optional[str] = None
    manager_id: Optional[int] = None
    model_config = ConfigDict(extra="forbid")

class WorkplaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[WorkplaceType] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    manager_id: Optional[int] = None
