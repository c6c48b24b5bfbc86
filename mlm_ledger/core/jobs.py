import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from mlm_ledger.core.config import JOB_STALE_AFTER_MINUTES
from mlm_ledger.core.exceptions import JobAlreadyRunning
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.crud import crud_job
from mlm_ledger.models.job import JobRun

logger = logging.getLogger(__name__)

WEEKLY_PAYOUT = "weekly_payout"
RETRY_FAILED_PAYOUTS = "retry_failed_payouts"
POOL_DISTRIBUTION = "pool_distribution"
RECONCILIATION = "reconciliation"
TREE_MAINTENANCE = "tree_maintenance"


def start_job(db: Session, job_type: str) -> JobRun:
    """
    Record the start of a batch job. Refuses to start while another run of
    the same type is still running, unless that run is older than the stale
    timeout (a crashed worker), in which case it is marked failed first.
    """
    now = utcnow()
    running = crud_job.get_running_job(db, job_type=job_type)
    if running is not None:
        if now - running.started_at < timedelta(minutes=JOB_STALE_AFTER_MINUTES):
            raise JobAlreadyRunning(f"Job '{job_type}' is already running (run {running.id})")
        logger.warning(f"Marking stale {job_type} run {running.id} as failed (started {running.started_at})")
        crud_job.finish_job_run(db, db_obj=running, status="failed", finished_at=now, error="stale run")
    job_run = crud_job.create_job_run(db, job_type=job_type, started_at=now)
    logger.info(f"Started {job_type} run {job_run.id}")
    return job_run


def finish_job(
    db: Session, job_run: JobRun, *, status: str = "success",
    details: Optional[Dict[str, Any]] = None, error: Optional[str] = None
) -> JobRun:
    job_run = crud_job.finish_job_run(
        db, db_obj=job_run, status=status, finished_at=utcnow(), details=details, error=error
    )
    logger.info(f"Finished {job_run.job_type} run {job_run.id} with status {status}")
    return job_run


def fail_job(db: Session, job_run: JobRun, exc: Exception) -> JobRun:
    # The failed work was rolled back; the session is clean again.
    logger.error(f"{job_run.job_type} run {job_run.id} failed: {exc}")
    return finish_job(db, job_run, status="failed", error=str(exc))
