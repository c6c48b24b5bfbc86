from sqlalchemy.orm import Session
from typing import Optional

from mlm_ledger.models.kyc import KycData
from mlm_ledger.schemas.kyc import KycSubmit

def get_kyc_by_user(db: Session, *, user_id: int) -> Optional[KycData]:
    return db.query(KycData).filter(KycData.user_id == user_id).first()

def upsert_kyc(db: Session, *, user_id: int, obj_in: KycSubmit) -> KycData:
    """
    Store submitted KYC details, replacing any earlier submission and
    resetting it to pending review. Does not commit.
    """
    db_obj = get_kyc_by_user(db, user_id=user_id)
    if db_obj is None:
        db_obj = KycData(user_id=user_id)
    for field, value in obj_in.model_dump().items():
        setattr(db_obj, field, value)
    db_obj.status = "pending"
    db_obj.rejection_reason = None
    db_obj.reviewed_at = None
    db.add(db_obj)
    return db_obj
