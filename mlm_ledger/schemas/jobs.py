from pydantic import BaseModel
from typing import Optional, List, Any, Dict
from datetime import datetime

class JobRun(BaseModel):
    id: int
    job_type: str
    status: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    details: Optional[Any] = None
    error: Optional[str] = None

    class Config:
        from_attributes = True

class PoolDistribution(BaseModel):
    id: int
    total_amount: int
    pools_processed: int
    breakdown: Optional[Dict[str, Dict[str, int]]] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PoolDistributionResult(BaseModel):
    job_run_id: Optional[int] = None
    distribution_id: int
    pools_processed: int
    total_amount: int
    users_rewarded: int
    unclaimed_amount: int
    breakdown: Dict[str, Dict[str, int]] = {}

class WalletMismatch(BaseModel):
    user_id: int
    wallet_balance: int
    ledger_balance: int
    discrepancy: int # wallet_balance - ledger_balance

class ReconciliationReport(BaseModel):
    job_run_id: Optional[int] = None
    users_checked: int = 0
    wallet_mismatches: List[WalletMismatch] = []
    installments_missing_entries: List[int] = []
    withdrawals_missing_debits: List[int] = []
    unprocessed_paid_orders: List[int] = []
    repaired: int = 0

    @property
    def is_clean(self) -> bool:
        return not (
            self.wallet_mismatches
            or self.installments_missing_entries
            or self.withdrawals_missing_debits
            or self.unprocessed_paid_orders
        )

class TreeHealthReport(BaseModel):
    job_run_id: Optional[int] = None
    users_checked: int = 0
    orphaned_users: List[int] = []
    inconsistent_users: List[int] = []
    repaired: int = 0
