import logging
from typing import Optional

from sqlalchemy.orm import Session

from mlm_ledger.core.config import MIN_WITHDRAWAL_AMOUNT
from mlm_ledger.core.exceptions import (
    InsufficientBalance,
    InvalidWithdrawalAmount,
    KycNotApproved,
    PendingWithdrawalExists,
    UserNotFound,
    WithdrawalNotFound,
    WithdrawalStateError,
)
from mlm_ledger.core.kyc import is_kyc_approved
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.core.wallet import post_entry
from mlm_ledger.crud import crud_kyc, crud_user, crud_withdrawal
from mlm_ledger.db.session import atomic
from mlm_ledger.models import ledger as entry_types
from mlm_ledger.models.withdrawal import Withdrawal
from mlm_ledger.schemas.ledger import LedgerEntryCreate

logger = logging.getLogger(__name__)


def request_withdrawal(db: Session, *, user_id: int, amount: int) -> Withdrawal:
    """
    Phase one: validate and record the request. The wallet is not touched
    until an admin approves it. The user row stays locked from the pending
    check to the insert, so a member can only ever have one open request.
    """
    with atomic(db):
        user = crud_user.get_user_for_update(db, user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found")
        if not is_kyc_approved(db, user):
            raise KycNotApproved("KYC must be approved before withdrawing")
        if amount <= 0 or amount < MIN_WITHDRAWAL_AMOUNT:
            raise InvalidWithdrawalAmount(f"Minimum withdrawal is {MIN_WITHDRAWAL_AMOUNT}")
        if crud_withdrawal.get_pending_for_user(db, user_id=user_id) is not None:
            raise PendingWithdrawalExists("A withdrawal request is already pending")
        if amount > user.wallet_balance:
            raise InsufficientBalance(f"Requested {amount} exceeds wallet balance {user.wallet_balance}")

        kyc = crud_kyc.get_kyc_by_user(db, user_id=user_id)
        bank_details = {
            "account_holder": kyc.full_name,
            "bank_name": kyc.bank_name,
            "account_number": kyc.bank_account_number,
            "ifsc_code": kyc.ifsc_code,
        }
        withdrawal = crud_withdrawal.create_withdrawal(db, user_id=user_id, amount=amount, bank_details=bank_details)
    db.refresh(withdrawal)
    logger.info(f"Withdrawal {withdrawal.id} requested by user {user_id} for {amount}")
    return withdrawal


def _get_requested(db: Session, withdrawal_id: int) -> Withdrawal:
    withdrawal = crud_withdrawal.get_withdrawal_for_update(db, withdrawal_id)
    if withdrawal is None:
        raise WithdrawalNotFound(f"Withdrawal {withdrawal_id} not found")
    if withdrawal.status != "requested":
        raise WithdrawalStateError(f"Withdrawal {withdrawal_id} is already {withdrawal.status}")
    return withdrawal


def approve_withdrawal(db: Session, *, withdrawal_id: int, admin_notes: Optional[str] = None) -> Withdrawal:
    """
    Phase two: debit the wallet and write the withdrawal_debit entry. If the
    balance no longer covers the amount the whole transaction rolls back and
    the request stays pending.
    """
    with atomic(db):
        withdrawal = _get_requested(db, withdrawal_id)
        post_entry(db, obj_in=LedgerEntryCreate(
            user_id=withdrawal.user_id,
            type=entry_types.WITHDRAWAL_DEBIT,
            amount=-withdrawal.amount,
            ref=f"withdrawal:{withdrawal.id}",
            description=f"Withdrawal {withdrawal.id}"
        ))
        withdrawal.status = "approved"
        withdrawal.admin_notes = admin_notes
        withdrawal.processed_at = utcnow()
        db.add(withdrawal)
    db.refresh(withdrawal)
    logger.info(f"Withdrawal {withdrawal_id} approved, {withdrawal.amount} debited from user {withdrawal.user_id}")
    return withdrawal


def reject_withdrawal(db: Session, *, withdrawal_id: int, admin_notes: Optional[str] = None) -> Withdrawal:
    with atomic(db):
        withdrawal = _get_requested(db, withdrawal_id)
        withdrawal.status = "rejected"
        withdrawal.admin_notes = admin_notes
        withdrawal.processed_at = utcnow()
        db.add(withdrawal)
    db.refresh(withdrawal)
    logger.info(f"Withdrawal {withdrawal_id} rejected")
    return withdrawal
