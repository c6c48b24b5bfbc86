from fastapi import APIRouter, Depends, HTTPException, Query, Body
from sqlalchemy.orm import Session
from typing import List, Optional

from mlm_ledger.crud import crud_order, crud_product
from mlm_ledger.core.commission_engine import mark_order_paid
from mlm_ledger.core.exceptions import InvalidOrderState, OrderNotFound, ProductNotFound
from mlm_ledger.schemas.order import Order, OrderCreate, OrderCreateInternal, OrderPaidEvent, OrderUpdate
from mlm_ledger.schemas.commission import CommissionResult
from mlm_ledger.models.user import User
from mlm_ledger.db.session import get_db
from mlm_ledger.core.dependencies import get_current_user, get_current_active_superuser

router = APIRouter()

@router.post("/", response_model=Order, status_code=201)
async def create_new_order(
    order_in: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Place an order for the authenticated member. Price and MLM value are
    snapshotted from the product at order time.
    """
    product = crud_product.get_product(db, product_id=order_in.product_id, show_inactive=False)
    if not product:
        raise ProductNotFound("Product not found or not active")

    order_internal_data = OrderCreateInternal(
        product_id=product.id,
        quantity=order_in.quantity,
        user_id=current_user.id,
        total=product.price * order_in.quantity,
        mlm_value=(product.mlm_value or 0) * order_in.quantity
    )
    return crud_order.create_order(db=db, obj_in=order_internal_data)

@router.get("/mine", response_model=List[Order])
async def read_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    """
    Retrieve orders placed by the authenticated member.
    """
    return crud_order.get_orders_by_user(db, user_id=current_user.id, status=status, skip=skip, limit=limit)

@router.post("/{order_id}/mark-paid", response_model=CommissionResult, tags=["Admin Orders"])
async def mark_paid(
    order_id: int,
    event: Optional[OrderPaidEvent] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    """
    Order-paid event. Marks the order paid and distributes its commissions.
    Safe to replay: an already processed order reports `already_processed`.
    """
    paid_at = event.paid_at if event else None
    return await mark_order_paid(db, order_id, paid_at=paid_at)

@router.get("/{order_id}", response_model=Order)
async def read_order_details(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Retrieve a specific order.
    Members can only view their own orders. Superusers can view any order.
    """
    db_order = crud_order.get_order(db, order_id=order_id)
    if not db_order:
        raise HTTPException(status_code=404, detail="Order not found")

    if not current_user.is_superuser and db_order.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to view this order")

    return db_order

@router.patch("/{order_id}", response_model=Order, tags=["Admin Orders"])
async def update_order_status(
    order_id: int,
    order_in: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    """
    Move an order to `delivered` or `cancelled`. Payment goes through
    mark-paid, and only an unpaid order can be cancelled.
    """
    db_order = crud_order.get_order(db, order_id=order_id)
    if not db_order:
        raise OrderNotFound(f"Order {order_id} not found")

    if order_in.status == "cancelled" and db_order.paid_at is not None:
        raise InvalidOrderState(f"Order {order_id} is paid and cannot be cancelled")
    if order_in.status == "delivered" and db_order.paid_at is None:
        raise InvalidOrderState(f"Order {order_id} is not paid and cannot be delivered")
    if order_in.status not in (None, "cancelled", "delivered"):
        raise InvalidOrderState(f"Orders cannot be set to '{order_in.status}' here")

    return crud_order.update_order(db, db_obj=db_order, obj_in=order_in)
