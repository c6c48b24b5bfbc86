from pydantic import BaseModel
from typing import Optional, List, Any, Dict
from datetime import datetime

class SelfPayoutSchedule(BaseModel):
    id: int
    user_id: int
    order_id: int
    week_number: int
    amount: int
    due_at: datetime
    status: str
    retry_count: int
    failure_reason: Optional[str] = None
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PayoutJobResult(BaseModel):
    job_run_id: Optional[int] = None
    processed: int = 0
    failed: int = 0
    total_amount: int = 0
    errors: List[Dict[str, Any]] = []

class RetryJobResult(BaseModel):
    job_run_id: Optional[int] = None
    rescheduled: int = 0
    exhausted: int = 0
