from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mlm_ledger.db.base_class import Base

class SelfPayoutSchedule(Base):
    __tablename__ = "self_payout_schedule"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("order.id"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)

    amount = Column(BigInteger, nullable=False) # Paisa
    due_at = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="scheduled", index=True) # scheduled, processed, failed
    retry_count = Column(Integer, nullable=False, default=0)
    failure_reason = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True)

    ref = Column(String(128), nullable=False, unique=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User")
    order = relationship("Order", backref="payout_schedule")

    def __repr__(self):
        return f"<SelfPayoutSchedule(id={self.id}, user_id={self.user_id}, week={self.week_number}, amount={self.amount}, status='{self.status}')>"
