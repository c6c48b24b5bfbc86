from fastapi import APIRouter, Depends, Query, Body
from sqlalchemy.orm import Session
from typing import List, Optional

from mlm_ledger.core import withdrawals
from mlm_ledger.core.dependencies import get_current_user, get_current_active_superuser
from mlm_ledger.crud import crud_withdrawal
from mlm_ledger.db.session import get_db
from mlm_ledger.models.user import User
from mlm_ledger.schemas.withdrawal import WithdrawalCreate, WithdrawalReview, Withdrawal as WithdrawalSchema

router = APIRouter()

@router.post("/", response_model=WithdrawalSchema, status_code=201)
def request_withdrawal(
    withdrawal_in: WithdrawalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Request a payout to the bank account on file. Needs approved KYC.
    The wallet is only debited once an admin approves the request.
    """
    return withdrawals.request_withdrawal(db, user_id=current_user.id, amount=withdrawal_in.amount)

@router.get("/mine", response_model=List[WithdrawalSchema])
def read_my_withdrawals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_withdrawal.get_withdrawals_by_user(db, user_id=current_user.id, skip=skip, limit=limit)

@router.get("/pending", response_model=List[WithdrawalSchema], tags=["Admin Withdrawals"])
def read_pending_withdrawals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_withdrawal.get_pending_withdrawals(db, skip=skip, limit=limit)

@router.post("/{withdrawal_id}/approve", response_model=WithdrawalSchema, tags=["Admin Withdrawals"])
def approve_withdrawal(
    withdrawal_id: int,
    review: Optional[WithdrawalReview] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    return withdrawals.approve_withdrawal(
        db, withdrawal_id=withdrawal_id, admin_notes=review.admin_notes if review else None
    )

@router.post("/{withdrawal_id}/reject", response_model=WithdrawalSchema, tags=["Admin Withdrawals"])
def reject_withdrawal(
    withdrawal_id: int,
    review: Optional[WithdrawalReview] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    return withdrawals.reject_withdrawal(
        db, withdrawal_id=withdrawal_id, admin_notes=review.admin_notes if review else None
    )
