from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Optional


class SwapStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SwapRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    requester_id: str
    target_id: str
    schedule_id: str
    status: SwapStatus = SwapStatus.PENDING
    reason: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SwapRequestCreate(BaseModel):
    schedule_id: str
    target_id: str
    reason: Optional[str] = None
