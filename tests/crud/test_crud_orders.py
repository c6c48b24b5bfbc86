import pytest
from datetime import datetime
from sqlalchemy.orm import Session

from mlm_ledger.crud import crud_order
from mlm_ledger.schemas.order import OrderCreateInternal, OrderUpdate

pytestmark = pytest.mark.crud


def _create(db, user, product, **overrides):
    data = dict(product_id=product.id, quantity=2, user_id=user.id, total=product.price * 2, mlm_value=product.mlm_value * 2)
    data.update(overrides)
    return crud_order.create_order(db, obj_in=OrderCreateInternal(**data))


def test_create_order(db_session: Session, make_user, test_product):
    user = make_user()
    order = _create(db_session, user, test_product)

    assert order.status == "pending"
    assert order.total == 200000
    assert order.mlm_value == 200000
    assert order.is_joining_order is False
    assert order.commissions_processed_at is None
    assert crud_order.get_order(db_session, order.id).product.id == test_product.id


def test_orders_by_user_filters_status(db_session: Session, make_user, test_product):
    user = make_user()
    other = make_user()
    first = _create(db_session, user, test_product)
    _create(db_session, user, test_product, status="paid")
    _create(db_session, other, test_product)

    assert len(crud_order.get_orders_by_user(db_session, user_id=user.id)) == 2
    pending = crud_order.get_orders_by_user(db_session, user_id=user.id, status="pending")
    assert [o.id for o in pending] == [first.id]


def test_paid_unprocessed_orders(db_session: Session, make_user, test_product):
    user = make_user()
    order = _create(db_session, user, test_product, status="paid")
    order.paid_at = datetime(2026, 1, 1)
    db_session.commit()
    assert crud_order.get_paid_unprocessed_order_ids(db_session) == [order.id]

    order.commissions_processed_at = datetime(2026, 1, 1, 0, 1)
    db_session.commit()
    assert crud_order.get_paid_unprocessed_order_ids(db_session) == []


def test_update_order_status(db_session: Session, make_user, test_product):
    order = _create(db_session, make_user(), test_product)
    updated = crud_order.update_order(db_session, db_obj=order, obj_in=OrderUpdate(status="cancelled"))
    assert updated.status == "cancelled"
