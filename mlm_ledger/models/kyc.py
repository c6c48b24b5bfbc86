from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mlm_ledger.db.base_class import Base

class KycData(Base):
    __tablename__ = "kyc_data"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="pending", index=True) # pending, approved, rejected

    full_name = Column(String(255), nullable=False)
    pan_number = Column(String(10), nullable=False)
    bank_name = Column(String(255), nullable=False)
    bank_account_number = Column(String(34), nullable=False)
    ifsc_code = Column(String(11), nullable=False)

    rejection_reason = Column(Text, nullable=True)
    submitted_at = Column(DateTime, server_default=func.now(), nullable=False)
    reviewed_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="kyc_data")

    def __repr__(self):
        return f"<KycData(user_id={self.user_id}, status='{self.status}')>"
