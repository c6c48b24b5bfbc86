from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class LedgerEntryBase(BaseModel):
    user_id: Optional[int] = None # None for company-side entries
    order_id: Optional[int] = None
    type: str = Field(..., max_length=50)
    amount: int # Signed paisa
    level_depth: Optional[int] = Field(default=None, ge=1, le=5)
    ref: str = Field(..., max_length=128)
    description: Optional[str] = None

class LedgerEntryCreate(LedgerEntryBase):
    """Used internally; entries are never created from client input."""
    pass

class LedgerEntry(LedgerEntryBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
