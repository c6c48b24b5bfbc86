from sqlalchemy.orm import Session
from typing import Optional, List, Any, Dict

from mlm_ledger.models.pool import TurnoverPool, PoolDistribution

def get_open_pool(db: Session, *, for_update: bool = False) -> Optional[TurnoverPool]:
    query = db.query(TurnoverPool).filter(TurnoverPool.distributed == False).order_by(TurnoverPool.id.desc())
    if for_update:
        query = query.with_for_update()
    return query.first()

def create_pool(db: Session) -> TurnoverPool:
    """Adds an empty pool and flushes it to get an id. Does not commit."""
    db_obj = TurnoverPool(
        total_amount=0, l1_amount=0, l2_amount=0, l3_amount=0, l4_amount=0, l5_amount=0, distributed=False
    )
    db.add(db_obj)
    db.flush()
    return db_obj

def get_undistributed_pools(db: Session) -> List[TurnoverPool]:
    return (
        db.query(TurnoverPool)
        .filter(TurnoverPool.distributed == False)
        .order_by(TurnoverPool.id)
        .with_for_update()
        .all()
    )

def create_distribution(
    db: Session, *, total_amount: int, pools_processed: int, breakdown: Dict[str, Any]
) -> PoolDistribution:
    db_obj = PoolDistribution(total_amount=total_amount, pools_processed=pools_processed, breakdown=breakdown)
    db.add(db_obj)
    db.flush()
    return db_obj

def get_distributions(db: Session, *, skip: int = 0, limit: int = 100) -> List[PoolDistribution]:
    return db.query(PoolDistribution).order_by(PoolDistribution.id.desc()).offset(skip).limit(limit).all()
