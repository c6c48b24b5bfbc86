from pydantic import BaseModel
from typing import Optional, Dict
from datetime import datetime

class WalletSummary(BaseModel):
    user_id: int
    wallet_balance: int
    pending_withdrawals: int
    available_balance: int
    totals_by_type: Dict[str, int] = {}
    upcoming_installments: int = 0
    next_installment_at: Optional[datetime] = None
