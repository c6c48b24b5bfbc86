from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

class AncestorEligibility(BaseModel):
    """One upline member as seen by the calculator."""
    depth: int
    user_id: int
    eligible: bool

class CommissionLine(BaseModel):
    """A single ledger movement produced by the calculator."""
    user_id: Optional[int] = None # None for company-side lines
    entry_type: str
    amount: int
    level_depth: Optional[int] = None
    ref: str
    description: str

class InstallmentPlan(BaseModel):
    week_number: int
    amount: int
    due_at: datetime
    ref: str

class CommissionPlan(BaseModel):
    order_id: int
    mlm_value: int
    is_joining_order: bool
    company_cut: int
    sponsors_pot: int
    self_pot: int
    pool_contribution: int
    lines: List[CommissionLine] = []
    installments: List[InstallmentPlan] = []

    @property
    def credited_total(self) -> int:
        return sum(line.amount for line in self.lines if line.user_id is not None)

    @property
    def company_total(self) -> int:
        return sum(line.amount for line in self.lines if line.user_id is None)

class CommissionResult(BaseModel):
    """Outcome of processing one paid order."""
    order_id: int
    status: str # processed, already_processed, nothing_to_distribute
    is_joining_order: bool = False
    activated_user: bool = False
    credited_total: int = 0
    company_total: int = 0
    pool_contribution: int = 0
    scheduled_total: int = 0
    entries_created: int = 0
