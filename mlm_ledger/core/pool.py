import logging
from decimal import Decimal, ROUND_FLOOR
from typing import Dict

from sqlalchemy.orm import Session

from mlm_ledger.core import jobs
from mlm_ledger.core.config import POOL_LEVEL_SHARES
from mlm_ledger.core.exceptions import NoPoolsAvailable
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.core.wallet import post_entry
from mlm_ledger.crud import crud_pool, crud_user
from mlm_ledger.db.session import atomic
from mlm_ledger.models import ledger as entry_types
from mlm_ledger.models.pool import TurnoverPool
from mlm_ledger.schemas.jobs import PoolDistributionResult
from mlm_ledger.schemas.ledger import LedgerEntryCreate

logger = logging.getLogger(__name__)


def split_pool_amount(amount: int) -> Dict[int, int]:
    """Level shares of a pool amount, floored, with the remainder on level 1."""
    shares = {
        level: int((Decimal(amount) * rate).to_integral_value(rounding=ROUND_FLOOR))
        for level, rate in POOL_LEVEL_SHARES.items()
    }
    shares[1] += amount - sum(shares.values())
    return shares


def add_to_turnover_pool(db: Session, amount: int) -> TurnoverPool:
    """Add a contribution to the open pool, opening one if needed. Caller commits."""
    pool = crud_pool.get_open_pool(db, for_update=True)
    if pool is None:
        pool = crud_pool.create_pool(db)
        logger.info(f"Opened turnover pool {pool.id}")
    if amount <= 0:
        return pool
    for level, share in split_pool_amount(amount).items():
        column = f"l{level}_amount"
        setattr(pool, column, (getattr(pool, column) or 0) + share)
    pool.total_amount = (pool.total_amount or 0) + amount
    db.add(pool)
    db.flush()
    return pool


def _split_equally(amount: int, count: int):
    base, remainder = divmod(amount, count)
    return [base + remainder if i == 0 else base for i in range(count)]


async def distribute_pools(db: Session) -> PoolDistributionResult:
    """
    Pay out every undistributed pool in one transaction. Each level is shared
    equally among active users sitting at exactly that pool level; levels with
    nobody to pay go to the company as pool_unclaimed.
    """
    job_run = jobs.start_job(db, jobs.POOL_DISTRIBUTION)
    try:
        with atomic(db):
            pools = crud_pool.get_undistributed_pools(db)
            if not pools:
                raise NoPoolsAvailable("No undistributed turnover pools")

            level_totals = {level: sum(p.level_amount(level) for p in pools) for level in POOL_LEVEL_SHARES}
            grand_total = sum(p.total_amount or 0 for p in pools)
            distribution = crud_pool.create_distribution(
                db, total_amount=grand_total, pools_processed=len(pools), breakdown={}
            )

            breakdown = {}
            users_rewarded = 0
            unclaimed_total = 0
            for level, level_amount in sorted(level_totals.items()):
                users = crud_user.get_active_users_at_pool_level(db, level=level)
                entry = {"amount": level_amount, "users": 0, "unclaimed": 0}
                if level_amount > 0 and users:
                    for user, share in zip(users, _split_equally(level_amount, len(users))):
                        if share <= 0:
                            continue
                        post_entry(db, obj_in=LedgerEntryCreate(
                            user_id=user.id,
                            type=entry_types.POOL_DISTRIBUTION,
                            amount=share,
                            level_depth=level,
                            ref=f"pool:{distribution.id}:L{level}:{user.id}",
                            description=f"Turnover pool level {level} share"
                        ))
                        entry["users"] += 1
                    users_rewarded += entry["users"]
                elif level_amount > 0:
                    post_entry(db, obj_in=LedgerEntryCreate(
                        user_id=None,
                        type=entry_types.POOL_UNCLAIMED,
                        amount=level_amount,
                        level_depth=level,
                        ref=f"pool:{distribution.id}:L{level}:unclaimed",
                        description=f"Turnover pool level {level} had no eligible users"
                    ))
                    entry["unclaimed"] = level_amount
                    unclaimed_total += level_amount
                breakdown[f"L{level}"] = entry

            now = utcnow()
            for pool in pools:
                pool.distributed = True
                pool.distributed_at = now
                db.add(pool)
            distribution.breakdown = breakdown
            db.add(distribution)
            db.flush()
            distribution_id = distribution.id
    except Exception as e:
        jobs.fail_job(db, job_run, e)
        raise

    result = PoolDistributionResult(
        job_run_id=job_run.id,
        distribution_id=distribution_id,
        pools_processed=len(pools),
        total_amount=grand_total,
        users_rewarded=users_rewarded,
        unclaimed_amount=unclaimed_total,
        breakdown=breakdown
    )
    jobs.finish_job(db, job_run, details=result.model_dump(exclude={"job_run_id"}))
    logger.info(f"Distributed {len(pools)} pools totalling {grand_total} to {users_rewarded} users")
    return result
