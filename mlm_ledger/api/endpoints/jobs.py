from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from mlm_ledger.core.dependencies import get_current_active_superuser
from mlm_ledger.core.payout_scheduler import process_due_installments, retry_failed_installments
from mlm_ledger.core.pool import distribute_pools
from mlm_ledger.core.reconciliation import reconcile_wallets
from mlm_ledger.core.tree_maintenance import check_tree_health
from mlm_ledger.crud import crud_job, crud_pool
from mlm_ledger.db.session import get_db
from mlm_ledger.models.user import User
from mlm_ledger.schemas import (
    JobRunSchema,
    PayoutJobResult,
    PoolDistributionResult,
    PoolDistributionSchema,
    ReconciliationReport,
    RetryJobResult,
    TreeHealthReport,
)

# Every route here is admin-only; an external scheduler calls them.
router = APIRouter(dependencies=[Depends(get_current_active_superuser)])

@router.post("/weekly-payouts", response_model=PayoutJobResult)
async def run_weekly_payouts(db: Session = Depends(get_db)):
    """
    Release all self income installments that have come due.
    """
    return await process_due_installments(db)

@router.post("/retry-failed-payouts", response_model=RetryJobResult)
async def run_retry_failed_payouts(db: Session = Depends(get_db)):
    return await retry_failed_installments(db)

@router.post("/pool-distribution", response_model=PoolDistributionResult)
async def run_pool_distribution(db: Session = Depends(get_db)):
    return await distribute_pools(db)

@router.post("/reconciliation", response_model=ReconciliationReport)
async def run_reconciliation(
    repair: bool = Query(False, description="Reset mismatched wallets to their ledger balance"),
    db: Session = Depends(get_db)
):
    return await reconcile_wallets(db, repair=repair)

@router.post("/tree-maintenance", response_model=TreeHealthReport)
async def run_tree_maintenance(
    repair: bool = Query(False, description="Rebuild hierarchy rows for broken users"),
    db: Session = Depends(get_db)
):
    return await check_tree_health(db, repair=repair)

@router.get("/runs", response_model=List[JobRunSchema])
def read_job_runs(
    db: Session = Depends(get_db),
    job_type: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200)
):
    return crud_job.get_job_runs(db, job_type=job_type, skip=skip, limit=limit)

@router.get("/pool-distributions", response_model=List[PoolDistributionSchema])
def read_pool_distributions(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200)
):
    """
    Past turnover pool payouts, newest first, with their per-level breakdown.
    """
    return crud_pool.get_distributions(db, skip=skip, limit=limit)
