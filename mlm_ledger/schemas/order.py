from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from mlm_ledger.schemas.product import Product  # For nesting in Order schema

class OrderBase(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1, le=100)

class OrderCreate(OrderBase):
    """
    Schema for data provided by the client when placing an order.
    - user_id is the authenticated buyer.
    - total and mlm_value are derived from the product.
    """
    pass

class OrderCreateInternal(OrderBase): # Used by CRUD operations internally
    user_id: int
    total: int = Field(..., ge=0)
    mlm_value: int = Field(default=0, ge=0)
    status: str = Field(default="pending", max_length=20)

class OrderUpdate(BaseModel):
    """Status changes by the system or an admin."""
    status: Optional[str] = Field(default=None, max_length=20)

class OrderPaidEvent(BaseModel):
    """Payment confirmation for an order. paid_at defaults to now."""
    paid_at: Optional[datetime] = None

class Order(OrderBase): # Full schema for returning order data to the client
    id: int
    user_id: int
    total: int
    mlm_value: int
    status: str
    is_joining_order: bool
    paid_at: Optional[datetime] = None
    commissions_processed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    product: Product

    class Config:
        from_attributes = True
