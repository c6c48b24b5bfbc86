import logging
from typing import Optional

from sqlalchemy.orm import Session

from mlm_ledger.core.exceptions import KycNotFound, KycStateError, UserNotFound
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.crud import crud_kyc, crud_user
from mlm_ledger.db.session import atomic
from mlm_ledger.models.kyc import KycData
from mlm_ledger.models.user import User
from mlm_ledger.schemas.kyc import KycSubmit

logger = logging.getLogger(__name__)

# User.kyc_status mirrors KycData.status in upper case
USER_KYC_STATUS = {"pending": "PENDING", "approved": "APPROVED", "rejected": "REJECTED"}


def submit_kyc(db: Session, *, user: User, obj_in: KycSubmit) -> KycData:
    with atomic(db):
        existing = crud_kyc.get_kyc_by_user(db, user_id=user.id)
        if existing is not None and existing.status == "approved":
            raise KycStateError("KYC is already approved and cannot be resubmitted")
        kyc = crud_kyc.upsert_kyc(db, user_id=user.id, obj_in=obj_in)
        user.kyc_status = USER_KYC_STATUS["pending"]
        db.add(user)
    db.refresh(kyc)
    logger.info(f"KYC submitted for user {user.id}")
    return kyc


def review_kyc(db: Session, *, user_id: int, approve: bool, reason: Optional[str] = None) -> KycData:
    with atomic(db):
        user = crud_user.get_user_for_update(db, user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found")
        kyc = crud_kyc.get_kyc_by_user(db, user_id=user_id)
        if kyc is None:
            raise KycNotFound(f"No KYC submission for user {user_id}")
        if kyc.status != "pending":
            raise KycStateError(f"KYC for user {user_id} is '{kyc.status}', only pending submissions can be reviewed")
        kyc.status = "approved" if approve else "rejected"
        kyc.rejection_reason = None if approve else (reason or "Rejected")
        kyc.reviewed_at = utcnow()
        user.kyc_status = USER_KYC_STATUS[kyc.status]
        db.add(kyc)
        db.add(user)
    db.refresh(kyc)
    logger.info(f"KYC for user {user_id} {kyc.status}")
    return kyc


def is_kyc_approved(db: Session, user: User) -> bool:
    """Withdrawals need both the user flag and the KYC record approved."""
    kyc = crud_kyc.get_kyc_by_user(db, user_id=user.id)
    return user.kyc_status == "APPROVED" and kyc is not None and kyc.status == "approved"
