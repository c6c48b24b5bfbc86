from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mlm_ledger.db.base_class import Base

# Entry types credited to (or debited from) a user's wallet
SPONSOR_COMMISSION = "sponsor_commission"
REPURCHASE_COMMISSION = "repurchase_commission"
SELF_JOINING_INSTALMENT = "self_joining_instalment"
POOL_DISTRIBUTION = "pool_distribution"
WITHDRAWAL_DEBIT = "withdrawal_debit"

# Company-side entry types (user_id is NULL)
COMPANY_FUND = "company_fund"
ROLLUP_TO_COMPANY = "rollup_to_company"
POOL_CONTRIBUTION = "pool_contribution"
POOL_UNCLAIMED = "pool_unclaimed"

WALLET_ENTRY_TYPES = (
    SPONSOR_COMMISSION,
    REPURCHASE_COMMISSION,
    SELF_JOINING_INSTALMENT,
    POOL_DISTRIBUTION,
    WITHDRAWAL_DEBIT,
)
COMPANY_ENTRY_TYPES = (COMPANY_FUND, ROLLUP_TO_COMPANY, POOL_CONTRIBUTION, POOL_UNCLAIMED)


class LedgerEntry(Base):
    """Append-only. Rows are never updated or deleted."""
    __tablename__ = "ledger"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=True, index=True) # NULL for company-side entries
    order_id = Column(Integer, ForeignKey("order.id"), nullable=True, index=True)

    type = Column(String(50), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False) # Signed paisa
    level_depth = Column(Integer, nullable=True)

    ref = Column(String(128), nullable=False, unique=True) # Idempotency key
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    user = relationship("User")
    order = relationship("Order", backref="ledger_entries")

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, user_id={self.user_id}, type='{self.type}', amount={self.amount}, ref='{self.ref}')>"
