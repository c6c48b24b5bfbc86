from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime

class WithdrawalCreate(BaseModel):
    amount: int = Field(..., gt=0) # Paisa

class WithdrawalReview(BaseModel):
    admin_notes: Optional[str] = Field(default=None, max_length=1000)

class Withdrawal(BaseModel):
    id: int
    user_id: int
    amount: int
    status: str
    bank_details: Optional[Any] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
