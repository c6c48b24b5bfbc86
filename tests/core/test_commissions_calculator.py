import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from mlm_ledger.core.commissions_calculator import calculate_commission_plan, build_installment_plan
from mlm_ledger.core.exceptions import LedgerInvariantError
from mlm_ledger.schemas.commission import AncestorEligibility

pytestmark = pytest.mark.core

PAID_AT = datetime(2026, 1, 5, 10, 0, 0)


def _full_upline(eligible: bool = True):
    return [AncestorEligibility(depth=d, user_id=100 + d, eligible=eligible) for d in range(1, 6)]


def _by_ref(plan):
    return {line.ref: line for line in plan.lines}


def test_joining_order_split_with_full_upline():
    plan = calculate_commission_plan(
        order_id=1, mlm_value=100000, ancestors=_full_upline(), is_joining_order=True, paid_at=PAID_AT
    )
    assert plan.company_cut == 30000
    assert plan.sponsors_pot == 49000
    assert plan.self_pot == 21000
    assert plan.pool_contribution == 9800

    lines = _by_ref(plan)
    assert lines["order:1:company"].amount == 30000
    assert lines["order:1:company"].user_id is None
    assert [lines[f"order:1:L{d}"].amount for d in range(1, 6)] == [12250, 9800, 7350, 4900, 4900]
    assert all(lines[f"order:1:L{d}"].entry_type == "sponsor_commission" for d in range(1, 6))
    assert lines["order:1:L1"].user_id == 101
    assert lines["order:1:pool"].amount == 9800
    assert plan.credited_total == 39200
    assert sum(line.amount for line in plan.lines) + plan.self_pot == 100000


def test_repurchase_order_has_no_self_pot():
    plan = calculate_commission_plan(
        order_id=2, mlm_value=100000, ancestors=_full_upline(), is_joining_order=False, paid_at=PAID_AT
    )
    assert plan.self_pot == 0
    assert plan.installments == []
    assert plan.sponsors_pot == 70000
    lines = _by_ref(plan)
    assert [lines[f"order:2:L{d}"].amount for d in range(1, 6)] == [17500, 14000, 10500, 7000, 7000]
    assert lines["order:2:L1"].entry_type == "repurchase_commission"
    assert plan.pool_contribution == 14000


def test_missing_and_ineligible_ancestors_roll_up_to_company():
    ancestors = [
        AncestorEligibility(depth=1, user_id=11, eligible=True),
        AncestorEligibility(depth=2, user_id=12, eligible=False),
    ]
    plan = calculate_commission_plan(
        order_id=3, mlm_value=100000, ancestors=ancestors, is_joining_order=True, paid_at=PAID_AT
    )
    lines = _by_ref(plan)
    assert lines["order:3:L1"].user_id == 11
    assert "order:3:L2" not in lines
    assert lines["order:3:L2:rollup"].entry_type == "rollup_to_company"
    assert lines["order:3:L2:rollup"].amount == 9800
    for depth in (3, 4, 5):
        assert lines[f"order:3:L{depth}:rollup"].user_id is None
    assert plan.credited_total == 12250
    assert plan.company_total + plan.credited_total + plan.self_pot == 100000


def test_no_upline_sends_every_level_to_company():
    plan = calculate_commission_plan(
        order_id=4, mlm_value=100000, ancestors=[], is_joining_order=True, paid_at=PAID_AT
    )
    assert plan.credited_total == 0
    assert plan.company_total == 100000 - plan.self_pot


def test_odd_value_floors_every_share_and_conserves_total():
    plan = calculate_commission_plan(
        order_id=5, mlm_value=999, ancestors=_full_upline(), is_joining_order=True, paid_at=PAID_AT
    )
    assert plan.company_cut == 299
    assert plan.sponsors_pot == 490
    assert plan.self_pot == 210
    assert [i.amount for i in plan.installments] == [54, 52, 52, 52]
    assert plan.pool_contribution == 99
    assert sum(line.amount for line in plan.lines) + plan.self_pot == 999


def test_zero_value_emits_nothing():
    plan = calculate_commission_plan(
        order_id=6, mlm_value=0, ancestors=_full_upline(), is_joining_order=True, paid_at=PAID_AT
    )
    assert plan.lines == []
    assert plan.installments == []


def test_tiny_value_skips_zero_amount_levels():
    plan = calculate_commission_plan(
        order_id=7, mlm_value=5, ancestors=_full_upline(), is_joining_order=False, paid_at=PAID_AT
    )
    assert all(line.amount > 0 for line in plan.lines)
    assert sum(line.amount for line in plan.lines) == 5


def test_installments_are_weekly_after_payment():
    plan = build_installment_plan(order_id=9, self_pot=21000, paid_at=PAID_AT)
    assert [i.week_number for i in plan] == [1, 2, 3, 4]
    assert [i.amount for i in plan] == [5250] * 4
    assert [i.due_at for i in plan] == [PAID_AT + timedelta(days=7 * w) for w in range(1, 5)]
    assert [i.ref for i in plan] == [f"self:9:w{w}" for w in range(1, 5)]


def test_invalid_rate_table_breaks_conservation():
    with pytest.raises(LedgerInvariantError):
        calculate_commission_plan(
            order_id=10, mlm_value=100000, ancestors=_full_upline(), is_joining_order=False,
            level_rates={1: Decimal("0.90"), 2: Decimal("0.90")}
        )


def test_negative_value_is_rejected():
    with pytest.raises(ValueError):
        calculate_commission_plan(order_id=11, mlm_value=-1, ancestors=[], is_joining_order=False)
