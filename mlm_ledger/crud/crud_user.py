from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional, List

from mlm_ledger.models.user import User
from mlm_ledger.schemas.user import UserCreate, UserUpdate

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_for_update(db: Session, user_id: int) -> Optional[User]:
    """Fetch a user with a row lock held until the surrounding transaction ends."""
    return db.query(User).filter(User.id == user_id).with_for_update().first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()

def get_user_by_referral_code(db: Session, referral_code: str) -> Optional[User]:
    return db.query(User).filter(User.referral_code == referral_code.strip().upper()).first()

def referral_code_exists(db: Session, referral_code: str) -> bool:
    return db.query(User.id).filter(User.referral_code == referral_code).first() is not None

def create_user(
    db: Session, *, obj_in: UserCreate, sponsor_id: Optional[int] = None, is_superuser: bool = False
) -> User:
    db_obj = User(
        email=obj_in.email,
        full_name=obj_in.full_name,
        sponsor_id=sponsor_id,
        wallet_balance=0,
        monthly_purchase=0,
        is_active=False, # Activated by the first paid order
        is_superuser=is_superuser
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def update_user(db: Session, *, db_obj: User, obj_in: UserUpdate) -> User:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_direct_referrals(db: Session, *, sponsor_id: int, skip: int = 0, limit: int = 100) -> List[User]:
    return (
        db.query(User)
        .filter(User.sponsor_id == sponsor_id)
        .order_by(User.id)
        .offset(skip)
        .limit(limit)
        .all()
    )

def count_direct_referrals(db: Session, *, sponsor_id: int, active_only: bool = False) -> int:
    query = db.query(func.count(User.id)).filter(User.sponsor_id == sponsor_id)
    if active_only:
        query = query.filter(User.is_active == True)
    return query.scalar() or 0

def get_direct_referral_ids(db: Session, *, sponsor_id: int) -> List[int]:
    return [row[0] for row in db.query(User.id).filter(User.sponsor_id == sponsor_id).order_by(User.id).all()]

def get_active_users_at_pool_level(db: Session, *, level: int) -> List[User]:
    """Active users whose pool level is exactly `level`, ordered by id."""
    return (
        db.query(User)
        .filter(User.pool_level == level, User.is_active == True)
        .order_by(User.id)
        .all()
    )
