from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Iterable, Set

from mlm_ledger.models.ledger import LedgerEntry
from mlm_ledger.schemas.ledger import LedgerEntryCreate

# Nothing in this module commits. Ledger rows are only ever written as part
# of a larger money movement whose transaction the caller owns.

def create_entry(db: Session, *, obj_in: LedgerEntryCreate) -> LedgerEntry:
    """
    Append a ledger entry and flush it so a duplicate `ref` fails immediately
    with an IntegrityError inside the caller's transaction.
    """
    db_obj = LedgerEntry(**obj_in.model_dump())
    db.add(db_obj)
    db.flush()
    return db_obj

def get_entry_by_ref(db: Session, ref: str) -> Optional[LedgerEntry]:
    return db.query(LedgerEntry).filter(LedgerEntry.ref == ref).first()

def order_refs_exist(db: Session, *, order_id: int) -> bool:
    """True when any `order:{order_id}:...` ref has been written."""
    prefix = f"order:{order_id}:"
    return db.query(LedgerEntry.id).filter(LedgerEntry.ref.startswith(prefix, autoescape=True)).first() is not None

def get_existing_refs(db: Session, refs: Iterable[str]) -> Set[str]:
    refs = list(refs)
    if not refs:
        return set()
    return {row[0] for row in db.query(LedgerEntry.ref).filter(LedgerEntry.ref.in_(refs)).all()}

def get_entries_by_user(
    db: Session, *, user_id: int, entry_type: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[LedgerEntry]:
    query = db.query(LedgerEntry).filter(LedgerEntry.user_id == user_id)
    if entry_type:
        query = query.filter(LedgerEntry.type == entry_type)
    return query.order_by(LedgerEntry.id.desc()).offset(skip).limit(limit).all()

def get_entries_by_order(db: Session, *, order_id: int) -> List[LedgerEntry]:
    return db.query(LedgerEntry).filter(LedgerEntry.order_id == order_id).order_by(LedgerEntry.id).all()

def get_user_ledger_balance(db: Session, *, user_id: int) -> int:
    """Sum of every entry belonging to the user. Must equal their wallet balance."""
    total = db.query(func.coalesce(func.sum(LedgerEntry.amount), 0)).filter(LedgerEntry.user_id == user_id).scalar()
    return int(total or 0)

def get_ledger_balances(db: Session) -> Dict[int, int]:
    """Ledger sum for every user that has at least one entry."""
    rows = (
        db.query(LedgerEntry.user_id, func.sum(LedgerEntry.amount))
        .filter(LedgerEntry.user_id.isnot(None))
        .group_by(LedgerEntry.user_id)
        .all()
    )
    return {user_id: int(total or 0) for user_id, total in rows}

def get_totals_by_type(db: Session, *, user_id: int) -> Dict[str, int]:
    rows = (
        db.query(LedgerEntry.type, func.sum(LedgerEntry.amount))
        .filter(LedgerEntry.user_id == user_id)
        .group_by(LedgerEntry.type)
        .all()
    )
    return {entry_type: int(total or 0) for entry_type, total in rows}

def get_company_total(db: Session) -> int:
    total = db.query(func.coalesce(func.sum(LedgerEntry.amount), 0)).filter(LedgerEntry.user_id.is_(None)).scalar()
    return int(total or 0)
