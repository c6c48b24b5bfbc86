import logging
from sqlalchemy.orm import Session

from mlm_ledger.core.exceptions import InsufficientBalance, UserNotFound
from mlm_ledger.crud import crud_ledger, crud_payout, crud_user, crud_withdrawal
from mlm_ledger.models.ledger import LedgerEntry
from mlm_ledger.models.user import User
from mlm_ledger.schemas.ledger import LedgerEntryCreate
from mlm_ledger.schemas.wallet import WalletSummary

logger = logging.getLogger(__name__)

# Balance changes are single SQL statements (`balance = balance + x`) so two
# transactions crediting the same user can never lose an update.


def credit_wallet(db: Session, *, user_id: int, amount: int) -> None:
    if amount < 0:
        raise ValueError(f"Credit amount must not be negative, got {amount}")
    updated = (
        db.query(User)
        .filter(User.id == user_id)
        .update({User.wallet_balance: User.wallet_balance + amount})
    )
    if updated != 1:
        raise UserNotFound(f"User {user_id} not found")


def debit_wallet(db: Session, *, user_id: int, amount: int) -> None:
    """
    Conditional debit: succeeds only while the balance covers the amount,
    otherwise raises InsufficientBalance and nothing changes.
    """
    if amount < 0:
        raise ValueError(f"Debit amount must not be negative, got {amount}")
    updated = (
        db.query(User)
        .filter(User.id == user_id, User.wallet_balance >= amount)
        .update({User.wallet_balance: User.wallet_balance - amount})
    )
    if updated != 1:
        if crud_user.get_user(db, user_id) is None:
            raise UserNotFound(f"User {user_id} not found")
        raise InsufficientBalance(f"Wallet of user {user_id} cannot cover {amount}")


def post_entry(db: Session, *, obj_in: LedgerEntryCreate) -> LedgerEntry:
    """
    Write a ledger entry and, for user-bound entries, move the wallet by the
    same signed amount. Both happen in the caller's transaction.
    """
    entry = crud_ledger.create_entry(db, obj_in=obj_in)
    if entry.user_id is not None:
        if entry.amount >= 0:
            credit_wallet(db, user_id=entry.user_id, amount=entry.amount)
        else:
            debit_wallet(db, user_id=entry.user_id, amount=-entry.amount)
    logger.debug(f"Posted ledger entry {entry.ref} ({entry.type}) amount {entry.amount} for user {entry.user_id}")
    return entry


def get_wallet_summary(db: Session, *, user_id: int) -> WalletSummary:
    user = crud_user.get_user(db, user_id)
    if user is None:
        raise UserNotFound(f"User {user_id} not found")
    pending = crud_withdrawal.get_pending_total(db, user_id=user_id)
    upcoming, next_due = crud_payout.get_upcoming_summary(db, user_id=user_id)
    return WalletSummary(
        user_id=user.id,
        wallet_balance=user.wallet_balance,
        pending_withdrawals=pending,
        available_balance=max(user.wallet_balance - pending, 0),
        totals_by_type=crud_ledger.get_totals_by_type(db, user_id=user_id),
        upcoming_installments=upcoming,
        next_installment_at=next_due
    )
