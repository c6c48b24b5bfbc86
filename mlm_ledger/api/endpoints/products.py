from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from mlm_ledger.crud import crud_product
from mlm_ledger.schemas.product import ProductCreate, ProductUpdate, Product as ProductSchema
from mlm_ledger.core.exceptions import ProductNotFound
from mlm_ledger.db.session import get_db
from mlm_ledger.core.dependencies import get_current_active_superuser
from mlm_ledger.models.user import User

router = APIRouter()

@router.post("/", response_model=ProductSchema, status_code=201)
def create_product(
    product_in: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser) # Admin only
):
    """
    Create a new product. Requires superuser privileges.
    """
    return crud_product.create_product(db=db, obj_in=product_in)

@router.get("/", response_model=List[ProductSchema])
def read_products(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    """
    Retrieve active products.
    """
    return crud_product.get_all_products(db=db, is_active=True, skip=skip, limit=limit)

@router.put("/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: int,
    product_in: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser) # Admin only
):
    """
    Update a product, including deactivating it. Orders already placed keep
    the price and MLM value they were created with.
    """
    product = crud_product.get_product(db, product_id=product_id, show_inactive=True)
    if not product:
        raise ProductNotFound(f"Product {product_id} not found")
    return crud_product.update_product(db=db, db_obj=product, obj_in=product_in)
