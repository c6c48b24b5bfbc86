from sqlalchemy import Column, Integer, BigInteger, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from mlm_ledger.db.base_class import Base

class TurnoverPool(Base):
    __tablename__ = "turnover_pool"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    total_amount = Column(BigInteger, nullable=False, default=0)
    l1_amount = Column(BigInteger, nullable=False, default=0)
    l2_amount = Column(BigInteger, nullable=False, default=0)
    l3_amount = Column(BigInteger, nullable=False, default=0)
    l4_amount = Column(BigInteger, nullable=False, default=0)
    l5_amount = Column(BigInteger, nullable=False, default=0)

    distributed = Column(Boolean, default=False, nullable=False, index=True)
    distributed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def level_amount(self, level: int) -> int:
        return getattr(self, f"l{level}_amount") or 0

    def __repr__(self):
        return f"<TurnoverPool(id={self.id}, total={self.total_amount}, distributed={self.distributed})>"


class PoolDistribution(Base):
    __tablename__ = "pool_distribution"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    total_amount = Column(BigInteger, nullable=False, default=0)
    pools_processed = Column(Integer, nullable=False, default=0)
    breakdown = Column(JSON, nullable=True) # {"L1": {"amount": .., "users": .., "unclaimed": ..}, ...}
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PoolDistribution(id={self.id}, total={self.total_amount}, pools={self.pools_processed})>"
