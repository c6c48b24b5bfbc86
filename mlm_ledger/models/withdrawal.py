from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mlm_ledger.db.base_class import Base

class Withdrawal(Base):
    __tablename__ = "withdrawal"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False) # Paisa, positive

    status = Column(String(20), nullable=False, default="requested", index=True) # requested, approved, rejected
    bank_details = Column(JSON, nullable=True) # Snapshot from KYC at request time
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    processed_at = Column(DateTime, nullable=True)

    user = relationship("User", backref="withdrawals")

    def __repr__(self):
        return f"<Withdrawal(id={self.id}, user_id={self.user_id}, amount={self.amount}, status='{self.status}')>"
