from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional, List

from mlm_ledger.models.payout import SelfPayoutSchedule
from mlm_ledger.schemas.commission import InstallmentPlan

def create_installment(db: Session, *, user_id: int, order_id: int, plan: InstallmentPlan) -> SelfPayoutSchedule:
    """Adds a scheduled installment row. Does not commit."""
    db_obj = SelfPayoutSchedule(
        user_id=user_id,
        order_id=order_id,
        week_number=plan.week_number,
        amount=plan.amount,
        due_at=plan.due_at,
        status="scheduled",
        retry_count=0,
        ref=plan.ref
    )
    db.add(db_obj)
    return db_obj

def installments_exist_for_order(db: Session, *, order_id: int) -> bool:
    return db.query(SelfPayoutSchedule.id).filter(SelfPayoutSchedule.order_id == order_id).first() is not None

def get_installment_for_update(db: Session, installment_id: int) -> Optional[SelfPayoutSchedule]:
    return (
        db.query(SelfPayoutSchedule)
        .filter(SelfPayoutSchedule.id == installment_id)
        .with_for_update()
        .first()
    )

def get_installments_by_user(
    db: Session, *, user_id: int, status: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[SelfPayoutSchedule]:
    query = db.query(SelfPayoutSchedule).filter(SelfPayoutSchedule.user_id == user_id)
    if status:
        query = query.filter(SelfPayoutSchedule.status == status)
    return query.order_by(SelfPayoutSchedule.due_at, SelfPayoutSchedule.id).offset(skip).limit(limit).all()

def get_due_installment_ids(db: Session, *, now: datetime, limit: int) -> List[int]:
    """Scheduled installments whose due date has passed, oldest first."""
    rows = (
        db.query(SelfPayoutSchedule.id)
        .filter(SelfPayoutSchedule.status == "scheduled", SelfPayoutSchedule.due_at <= now)
        .order_by(SelfPayoutSchedule.due_at, SelfPayoutSchedule.id)
        .limit(limit)
        .all()
    )
    return [row[0] for row in rows]

def get_failed_installments(db: Session) -> List[SelfPayoutSchedule]:
    return (
        db.query(SelfPayoutSchedule)
        .filter(SelfPayoutSchedule.status == "failed")
        .order_by(SelfPayoutSchedule.id)
        .all()
    )

def get_processed_installments(db: Session) -> List[SelfPayoutSchedule]:
    return (
        db.query(SelfPayoutSchedule)
        .filter(SelfPayoutSchedule.status == "processed")
        .order_by(SelfPayoutSchedule.id)
        .all()
    )

def get_upcoming_summary(db: Session, *, user_id: int):
    """(total scheduled amount, earliest due date) for a user's unpaid installments."""
    total, next_due = (
        db.query(func.coalesce(func.sum(SelfPayoutSchedule.amount), 0), func.min(SelfPayoutSchedule.due_at))
        .filter(SelfPayoutSchedule.user_id == user_id, SelfPayoutSchedule.status == "scheduled")
        .one()
    )
    return int(total or 0), next_due
