import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mlm_ledger.crud import crud_ledger
from mlm_ledger.schemas.ledger import LedgerEntryCreate

pytestmark = pytest.mark.crud


def _entry(user_id, amount, ref, entry_type="sponsor_commission"):
    return LedgerEntryCreate(user_id=user_id, type=entry_type, amount=amount, ref=ref)


def test_create_and_fetch_by_ref(db_session: Session, make_user):
    user = make_user()
    created = crud_ledger.create_entry(db_session, obj_in=_entry(user.id, 1200, "order:1:L1"))
    db_session.commit()

    fetched = crud_ledger.get_entry_by_ref(db_session, "order:1:L1")
    assert fetched.id == created.id
    assert fetched.amount == 1200
    assert fetched.created_at is not None


def test_duplicate_ref_is_rejected(db_session: Session, make_user):
    user = make_user()
    crud_ledger.create_entry(db_session, obj_in=_entry(user.id, 100, "dup"))
    with pytest.raises(IntegrityError):
        crud_ledger.create_entry(db_session, obj_in=_entry(user.id, 100, "dup"))
    db_session.rollback()


def test_balances_and_totals(db_session: Session, make_user):
    alice = make_user()
    bob = make_user()
    crud_ledger.create_entry(db_session, obj_in=_entry(alice.id, 1000, "a1"))
    crud_ledger.create_entry(db_session, obj_in=_entry(alice.id, 500, "a2", "pool_distribution"))
    crud_ledger.create_entry(db_session, obj_in=_entry(alice.id, -300, "a3", "withdrawal_debit"))
    crud_ledger.create_entry(db_session, obj_in=_entry(bob.id, 50, "b1"))
    crud_ledger.create_entry(db_session, obj_in=_entry(None, 9000, "c1", "company_fund"))
    db_session.commit()

    assert crud_ledger.get_user_ledger_balance(db_session, user_id=alice.id) == 1200
    assert crud_ledger.get_ledger_balances(db_session) == {alice.id: 1200, bob.id: 50}
    assert crud_ledger.get_totals_by_type(db_session, user_id=alice.id) == {
        "sponsor_commission": 1000, "pool_distribution": 500, "withdrawal_debit": -300
    }
    assert crud_ledger.get_company_total(db_session) == 9000
    assert crud_ledger.get_existing_refs(db_session, ["a1", "zz"]) == {"a1"}


def test_history_is_newest_first_and_paginated(db_session: Session, make_user):
    user = make_user()
    for i in range(5):
        crud_ledger.create_entry(db_session, obj_in=_entry(user.id, i + 1, f"h{i}"))
    db_session.commit()

    page = crud_ledger.get_entries_by_user(db_session, user_id=user.id, skip=1, limit=2)
    assert [e.ref for e in page] == ["h3", "h2"]
    only_type = crud_ledger.get_entries_by_user(db_session, user_id=user.id, entry_type="pool_distribution")
    assert only_type == []
