from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from mlm_ledger.db.base_class import Base

class Hierarchy(Base):
    """Closure table: one row per (ancestor, descendant) pair up to 5 sponsor levels apart."""
    __tablename__ = "hierarchy"
    __table_args__ = (
        UniqueConstraint("ancestor_id", "descendant_id", name="uq_hierarchy_pair"),
        CheckConstraint("depth >= 1 AND depth <= 5", name="ck_hierarchy_depth"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    ancestor_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    descendant_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    depth = Column(Integer, nullable=False)

    ancestor = relationship("User", foreign_keys=[ancestor_id])
    descendant = relationship("User", foreign_keys=[descendant_id])

    def __repr__(self):
        return f"<Hierarchy(ancestor_id={self.ancestor_id}, descendant_id={self.descendant_id}, depth={self.depth})>"
