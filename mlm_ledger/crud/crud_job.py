from datetime import datetime
from sqlalchemy.orm import Session
from typing import Optional, List, Any, Dict

from mlm_ledger.models.job import JobRun

def get_running_job(db: Session, *, job_type: str) -> Optional[JobRun]:
    return (
        db.query(JobRun)
        .filter(JobRun.job_type == job_type, JobRun.status == "running")
        .order_by(JobRun.started_at.desc())
        .first()
    )

def create_job_run(db: Session, *, job_type: str, started_at: datetime) -> JobRun:
    db_obj = JobRun(job_type=job_type, status="running", started_at=started_at)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def finish_job_run(
    db: Session,
    *,
    db_obj: JobRun,
    status: str,
    finished_at: datetime,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None
) -> JobRun:
    db_obj.status = status
    db_obj.finished_at = finished_at
    db_obj.details = details
    db_obj.error = error
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_job_runs(
    db: Session, *, job_type: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[JobRun]:
    query = db.query(JobRun)
    if job_type:
        query = query.filter(JobRun.job_type == job_type)
    return query.order_by(JobRun.started_at.desc(), JobRun.id.desc()).offset(skip).limit(limit).all()
