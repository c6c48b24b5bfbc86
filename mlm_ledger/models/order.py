from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mlm_ledger.db.base_class import Base

# Orders in these states have not been paid for, whatever paid_at says
UNPAID_STATUSES = ("pending", "cancelled")

class Order(Base):
    __tablename__ = "order"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True) # Buyer
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    total = Column(BigInteger, nullable=False) # Paisa
    mlm_value = Column(BigInteger, nullable=False, default=0) # Snapshot of product.mlm_value * quantity

    status = Column(String(20), nullable=False, default="pending", index=True)
    # e.g., pending, paid, delivered, cancelled
    is_joining_order = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    commissions_processed_at = Column(DateTime, nullable=True) # Set once, inside the commission transaction

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    product = relationship("Product")
    user = relationship("User")

    def __repr__(self):
        return f"<Order(id={self.id}, user_id={self.user_id}, product_id={self.product_id}, status='{self.status}')>"
