from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from mlm_ledger.db.base_class import Base

class User(Base):
    __tablename__ = "user"
    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="ck_user_wallet_non_negative"),
        CheckConstraint("pool_level >= 0 AND pool_level <= 5", name="ck_user_pool_level"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)

    referral_code = Column(String(16), unique=True, index=True, nullable=True) # Assigned on activation
    sponsor_id = Column(Integer, ForeignKey("user.id"), nullable=True, index=True)

    wallet_balance = Column(BigInteger, nullable=False, default=0) # Paisa; must equal the user's ledger sum
    monthly_purchase = Column(BigInteger, nullable=False, default=0) # Paisa

    is_active = Column(Boolean, default=False, nullable=False) # True after the first paid order
    activated_at = Column(DateTime, nullable=True)
    kyc_status = Column(String(20), nullable=False, default="NOT_SUBMITTED") # NOT_SUBMITTED, PENDING, APPROVED, REJECTED

    is_eligible_repurchase = Column(Boolean, default=False, nullable=False) # Last 3-3 rule evaluation
    team_count = Column(Integer, nullable=False, default=0)
    pool_level = Column(Integer, nullable=False, default=0) # 0 = not in any pool level

    is_superuser = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Self-referential relationship for sponsor/referrals
    sponsor = relationship("User", remote_side=[id], back_populates="referrals")
    referrals = relationship("User", back_populates="sponsor")

    kyc_data = relationship("KycData", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', referral_code='{self.referral_code}', active={self.is_active})>"
