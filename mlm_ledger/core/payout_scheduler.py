import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mlm_ledger.core import jobs
from mlm_ledger.core.config import MAX_INSTALLMENT_RETRIES, PAYOUT_BATCH_SIZE
from mlm_ledger.core.exceptions import LedgerError
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.core.wallet import post_entry
from mlm_ledger.crud import crud_payout, crud_user
from mlm_ledger.db.session import atomic
from mlm_ledger.models import ledger as entry_types
from mlm_ledger.schemas.ledger import LedgerEntryCreate
from mlm_ledger.schemas.payout import PayoutJobResult, RetryJobResult

logger = logging.getLogger(__name__)


def release_installment(db: Session, installment_id: int, now: datetime) -> Tuple[str, int]:
    """
    Pay one installment in its own transaction.
    Returns (outcome, amount credited) where outcome is processed, failed or skipped.
    """
    with atomic(db):
        installment = crud_payout.get_installment_for_update(db, installment_id)
        if installment is None or installment.status != "scheduled":
            return "skipped", 0
        user = crud_user.get_user(db, installment.user_id)
        if user is None or not user.is_active:
            installment.status = "failed"
            installment.failure_reason = "user is not active"
            db.add(installment)
            logger.warning(f"Installment {installment_id} failed: user {installment.user_id} is not active")
            return "failed", 0

        post_entry(db, obj_in=LedgerEntryCreate(
            user_id=installment.user_id,
            order_id=installment.order_id,
            type=entry_types.SELF_JOINING_INSTALMENT,
            amount=installment.amount,
            ref=f"instalment:{installment.id}",
            description=f"Self income week {installment.week_number} of order {installment.order_id}"
        ))
        installment.status = "processed"
        installment.processed_at = now
        installment.failure_reason = None
        db.add(installment)
        return "processed", installment.amount


def _mark_failed(db: Session, installment_id: int, reason: str) -> None:
    with atomic(db):
        installment = crud_payout.get_installment_for_update(db, installment_id)
        if installment is not None and installment.status == "scheduled":
            installment.status = "failed"
            installment.failure_reason = reason[:500]
            db.add(installment)


async def process_due_installments(
    db: Session, *, now: Optional[datetime] = None, batch_size: int = PAYOUT_BATCH_SIZE
) -> PayoutJobResult:
    """
    Weekly payout job: release every scheduled installment that has come due.
    One installment failing never affects the others.
    """
    now = now or utcnow()
    job_run = jobs.start_job(db, jobs.WEEKLY_PAYOUT)
    result = PayoutJobResult(job_run_id=job_run.id)
    attempted = set()

    while True:
        batch = [i for i in crud_payout.get_due_installment_ids(db, now=now, limit=batch_size) if i not in attempted]
        if not batch:
            break
        for installment_id in batch:
            attempted.add(installment_id)
            try:
                outcome, amount = release_installment(db, installment_id, now)
            except (LedgerError, SQLAlchemyError) as e:
                logger.error(f"Installment {installment_id} could not be paid: {e}")
                _mark_failed(db, installment_id, str(e))
                result.failed += 1
                result.errors.append({"installment_id": installment_id, "error": str(e)})
                continue
            if outcome == "processed":
                result.processed += 1
                result.total_amount += amount
            elif outcome == "failed":
                result.failed += 1
                result.errors.append({"installment_id": installment_id, "error": "user is not active"})

    if result.failed == 0:
        status = "success"
    else:
        status = "partial_success" if result.processed else "failed"
    jobs.finish_job(db, job_run, status=status, details=result.model_dump(exclude={"job_run_id"}))
    logger.info(f"Weekly payouts: {result.processed} processed, {result.failed} failed, total {result.total_amount}")
    return result


async def retry_failed_installments(db: Session, *, max_retries: int = MAX_INSTALLMENT_RETRIES) -> RetryJobResult:
    """Put failed installments back on the schedule until they run out of retries."""
    job_run = jobs.start_job(db, jobs.RETRY_FAILED_PAYOUTS)
    result = RetryJobResult(job_run_id=job_run.id)
    try:
        with atomic(db):
            for installment in crud_payout.get_failed_installments(db):
                if installment.retry_count >= max_retries:
                    result.exhausted += 1
                    continue
                installment.status = "scheduled"
                installment.retry_count += 1
                db.add(installment)
                result.rescheduled += 1
    except Exception as e:
        jobs.fail_job(db, job_run, e)
        raise
    jobs.finish_job(db, job_run, details=result.model_dump(exclude={"job_run_id"}))
    logger.info(f"Retry job: {result.rescheduled} rescheduled, {result.exhausted} exhausted")
    return result
