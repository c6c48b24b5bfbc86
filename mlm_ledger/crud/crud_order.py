from sqlalchemy.orm import Session, joinedload
from typing import Optional, List

from mlm_ledger.models.order import Order, UNPAID_STATUSES
from mlm_ledger.schemas.order import OrderCreateInternal, OrderUpdate

def create_order(db: Session, *, obj_in: OrderCreateInternal) -> Order:
    """
    Create a new order.
    obj_in should be of type OrderCreateInternal which includes the derived total and mlm_value.
    """
    db_obj = Order(**obj_in.model_dump())
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_order(db: Session, order_id: int) -> Optional[Order]:
    """
    Get a single order by ID, with the product eagerly loaded.
    """
    return (
        db.query(Order)
        .options(joinedload(Order.product))
        .filter(Order.id == order_id)
        .first()
    )

def get_order_for_update(db: Session, order_id: int) -> Optional[Order]:
    """Fetch an order with a row lock held until the surrounding transaction ends."""
    return db.query(Order).filter(Order.id == order_id).with_for_update().first()

def get_orders_by_user(
    db: Session, *, user_id: int, status: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[Order]:
    """
    Get a list of orders for a buyer, newest first.
    """
    query = (
        db.query(Order)
        .options(joinedload(Order.product))
        .filter(Order.user_id == user_id)
    )
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit).all()

def update_order(db: Session, *, db_obj: Order, obj_in: OrderUpdate) -> Order:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_paid_unprocessed_order_ids(db: Session) -> List[int]:
    """Paid orders whose commissions were never recorded."""
    return [
        row[0]
        for row in db.query(Order.id)
        .filter(
            Order.paid_at.isnot(None),
            Order.commissions_processed_at.is_(None),
            Order.status.notin_(UNPAID_STATUSES)
        )
        .order_by(Order.id)
        .all()
    ]
