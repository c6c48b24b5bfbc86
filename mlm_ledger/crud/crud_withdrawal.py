from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional, List, Any, Dict

from mlm_ledger.models.withdrawal import Withdrawal

def create_withdrawal(
    db: Session, *, user_id: int, amount: int, bank_details: Optional[Dict[str, Any]] = None
) -> Withdrawal:
    """Adds a requested withdrawal and flushes it. Caller commits."""
    db_obj = Withdrawal(user_id=user_id, amount=amount, status="requested", bank_details=bank_details)
    db.add(db_obj)
    db.flush()
    return db_obj

def get_withdrawal(db: Session, withdrawal_id: int) -> Optional[Withdrawal]:
    return db.query(Withdrawal).filter(Withdrawal.id == withdrawal_id).first()

def get_withdrawal_for_update(db: Session, withdrawal_id: int) -> Optional[Withdrawal]:
    return db.query(Withdrawal).filter(Withdrawal.id == withdrawal_id).with_for_update().first()

def get_withdrawals_by_user(db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Withdrawal]:
    return (
        db.query(Withdrawal)
        .filter(Withdrawal.user_id == user_id)
        .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_pending_withdrawals(db: Session, *, skip: int = 0, limit: int = 100) -> List[Withdrawal]:
    return (
        db.query(Withdrawal)
        .filter(Withdrawal.status == "requested")
        .order_by(Withdrawal.id)
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_pending_for_user(db: Session, *, user_id: int) -> Optional[Withdrawal]:
    return (
        db.query(Withdrawal)
        .filter(Withdrawal.user_id == user_id, Withdrawal.status == "requested")
        .first()
    )

def get_pending_total(db: Session, *, user_id: int) -> int:
    total = (
        db.query(func.coalesce(func.sum(Withdrawal.amount), 0))
        .filter(Withdrawal.user_id == user_id, Withdrawal.status == "requested")
        .scalar()
    )
    return int(total or 0)

def get_approved_withdrawals(db: Session) -> List[Withdrawal]:
    return db.query(Withdrawal).filter(Withdrawal.status == "approved").order_by(Withdrawal.id).all()
