from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from mlm_ledger.crud import crud_user
from mlm_ledger import schemas
from mlm_ledger.core import dependencies
from mlm_ledger.core.exceptions import InvalidSponsor, UserNotFound
from mlm_ledger.db.session import get_db
from mlm_ledger.models.user import User as UserModel

router = APIRouter()

@router.post("/register", response_model=schemas.User, status_code=201)
def register_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Register a new member, optionally under a sponsor's referral code.
    The account stays inactive until its first order is paid.
    """
    existing_user = crud_user.get_user_by_email(db, email=user_in.email)
    if existing_user:
        raise HTTPException(
            status_code=400,
            detail="A user with this email already exists in the system.",
        )

    sponsor_id = None
    if user_in.sponsor_referral_code:
        sponsor = crud_user.get_user_by_referral_code(db, referral_code=user_in.sponsor_referral_code)
        if not sponsor or not sponsor.is_active:
            raise InvalidSponsor(f"Referral code {user_in.sponsor_referral_code} does not belong to an active member")
        sponsor_id = sponsor.id

    return crud_user.create_user(db=db, obj_in=user_in, sponsor_id=sponsor_id)

@router.get("/me", response_model=schemas.User)
async def read_user_me(
    current_user: UserModel = Depends(dependencies.get_current_user)
):
    """
    Get the current member's profile, including wallet balance and pool level.
    """
    return current_user

@router.patch("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: int,
    user_in: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(dependencies.get_current_active_superuser)
):
    """
    Update a member's name or admin flag. Requires superuser privileges.
    """
    user = crud_user.get_user(db, user_id)
    if not user:
        raise UserNotFound(f"User {user_id} not found")
    return crud_user.update_user(db=db, db_obj=user, obj_in=user_in)
