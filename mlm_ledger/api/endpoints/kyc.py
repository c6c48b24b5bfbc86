from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mlm_ledger.core import kyc
from mlm_ledger.core.dependencies import get_current_user, get_current_active_superuser
from mlm_ledger.core.exceptions import KycNotFound
from mlm_ledger.crud import crud_kyc
from mlm_ledger.db.session import get_db
from mlm_ledger.models.user import User
from mlm_ledger.schemas.kyc import KycSubmit, KycReview, KycData as KycDataSchema

router = APIRouter()

@router.post("/me", response_model=KycDataSchema, status_code=201)
def submit_my_kyc(
    kyc_in: KycSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Submit (or resubmit after rejection) identity and bank details.
    """
    return kyc.submit_kyc(db, user=current_user, obj_in=kyc_in)

@router.get("/me", response_model=KycDataSchema)
def read_my_kyc(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_kyc = crud_kyc.get_kyc_by_user(db, user_id=current_user.id)
    if not db_kyc:
        raise KycNotFound("No KYC submission found")
    return db_kyc

@router.post("/{user_id}/review", response_model=KycDataSchema, tags=["Admin KYC"])
def review_kyc(
    user_id: int,
    review: KycReview,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    return kyc.review_kyc(db, user_id=user_id, approve=review.approve, reason=review.reason)
