from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class KycSubmit(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    pan_number: str = Field(..., pattern=r"^[A-Z]{5}[0-9]{4}[A-Z]$")
    bank_name: str = Field(..., min_length=1, max_length=255)
    bank_account_number: str = Field(..., pattern=r"^[0-9]{9,18}$")
    ifsc_code: str = Field(..., pattern=r"^[A-Z]{4}0[A-Z0-9]{6}$")

class KycReview(BaseModel):
    approve: bool
    reason: Optional[str] = Field(default=None, max_length=1000)

class KycData(KycSubmit):
    id: int
    user_id: int
    status: str
    rejection_reason: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
