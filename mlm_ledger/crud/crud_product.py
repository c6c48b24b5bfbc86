from sqlalchemy.orm import Session
from typing import Optional, List

from mlm_ledger.models.product import Product
from mlm_ledger.schemas.product import ProductCreate, ProductUpdate

def get_product(db: Session, product_id: int, *, show_inactive: bool = False) -> Optional[Product]:
    """
    Get a single product by ID.
    By default, only active products are returned unless show_inactive is True.
    """
    query = db.query(Product).filter(Product.id == product_id)
    if not show_inactive:
        query = query.filter(Product.is_active == True)
    return query.first()

def get_all_products(
    db: Session, *, is_active: Optional[bool] = None, skip: int = 0, limit: int = 100
) -> List[Product]:
    """
    Get all products.
    Can filter by active status. If is_active is None, returns all.
    """
    query = db.query(Product)
    if is_active is not None:
        query = query.filter(Product.is_active == is_active)
    return query.order_by(Product.name).offset(skip).limit(limit).all()

def create_product(db: Session, *, obj_in: ProductCreate) -> Product:
    db_obj = Product(**obj_in.model_dump())
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def update_product(db: Session, *, db_obj: Product, obj_in: ProductUpdate) -> Product:
    # Pydantic V2 uses model_dump(exclude_unset=True) for partial updates
    update_data = obj_in.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        setattr(db_obj, field, value)

    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
