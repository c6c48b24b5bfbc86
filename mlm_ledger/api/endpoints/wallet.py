from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from mlm_ledger.core import wallet
from mlm_ledger.core.dependencies import get_current_user
from mlm_ledger.crud import crud_ledger, crud_payout
from mlm_ledger.db.session import get_db
from mlm_ledger.models.user import User
from mlm_ledger.schemas import LedgerEntrySchema, SelfPayoutScheduleSchema, WalletSummary

router = APIRouter()

@router.get("/me", response_model=WalletSummary)
def read_my_wallet(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Wallet balance, amount held by pending withdrawals, totals per entry type
    and the self income still to come.
    """
    return wallet.get_wallet_summary(db, user_id=current_user.id)

@router.get("/me/ledger", response_model=List[LedgerEntrySchema])
def read_my_ledger(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    entry_type: Optional[str] = Query(None, alias="type"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200)
):
    return crud_ledger.get_entries_by_user(db, user_id=current_user.id, entry_type=entry_type, skip=skip, limit=limit)

@router.get("/me/payouts", response_model=List[SelfPayoutScheduleSchema])
def read_my_payouts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_payout.get_installments_by_user(db, user_id=current_user.id, status=status, skip=skip, limit=limit)
