import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, List, Optional, Sequence

from mlm_ledger.core import config
from mlm_ledger.core.exceptions import LedgerInvariantError
from mlm_ledger.models import ledger as entry_types
from mlm_ledger.schemas.commission import AncestorEligibility, CommissionLine, CommissionPlan, InstallmentPlan

logger = logging.getLogger(__name__)


def _floor(amount: int, rate: Decimal) -> int:
    return int((Decimal(amount) * rate).to_integral_value(rounding=ROUND_FLOOR))


def build_installment_plan(
    *, order_id: int, self_pot: int, paid_at: datetime,
    installments: int = config.SELF_INCOME_INSTALLMENTS,
    interval_days: int = config.SELF_INCOME_INTERVAL_DAYS
) -> List[InstallmentPlan]:
    """
    Split the self pot into equal weekly installments. The division remainder
    is paid with the first installment so the plan always sums to self_pot.
    """
    if self_pot <= 0:
        return []
    base, remainder = divmod(self_pot, installments)
    plan = []
    for week in range(1, installments + 1):
        amount = base + remainder if week == 1 else base
        if amount <= 0:
            continue
        plan.append(InstallmentPlan(
            week_number=week,
            amount=amount,
            due_at=paid_at + timedelta(days=interval_days * week),
            ref=f"self:{order_id}:w{week}"
        ))
    return plan


def calculate_commission_plan(
    *,
    order_id: int,
    mlm_value: int,
    ancestors: Sequence[AncestorEligibility],
    is_joining_order: bool,
    paid_at: Optional[datetime] = None,
    level_rates: Optional[Dict[int, Decimal]] = None
) -> CommissionPlan:
    """
    Compute every ledger movement for one paid order.

    Pure: reads nothing from the database. `ancestors` holds the upline as
    seen at payment time, one entry per occupied depth; depths with no entry
    are treated as missing and roll up to the company.

    Returns a plan whose lines plus self_pot add up to exactly mlm_value.
    """
    if mlm_value < 0:
        raise ValueError(f"mlm_value must not be negative, got {mlm_value}")
    if level_rates is None:
        level_rates = config.JOINING_LEVEL_RATES if is_joining_order else config.REPURCHASE_LEVEL_RATES

    company_cut = _floor(mlm_value, config.COMPANY_SHARE)
    if is_joining_order:
        bucket = mlm_value - company_cut
        sponsors_pot = _floor(bucket, config.JOINING_SPONSORS_SHARE)
        self_pot = bucket - sponsors_pot
        credit_type = entry_types.SPONSOR_COMMISSION
    else:
        sponsors_pot = mlm_value - company_cut
        self_pot = 0
        credit_type = entry_types.REPURCHASE_COMMISSION

    lines: List[CommissionLine] = []
    if company_cut > 0:
        lines.append(CommissionLine(
            user_id=None,
            entry_type=entry_types.COMPANY_FUND,
            amount=company_cut,
            ref=f"order:{order_id}:company",
            description=f"Company share of order {order_id}"
        ))

    by_depth = {a.depth: a for a in ancestors}
    allocated = 0
    for depth in range(1, config.MAX_HIERARCHY_DEPTH + 1):
        amount = _floor(sponsors_pot, level_rates.get(depth, Decimal("0")))
        if amount <= 0:
            continue
        allocated += amount
        ancestor = by_depth.get(depth)
        if ancestor is not None and ancestor.eligible:
            lines.append(CommissionLine(
                user_id=ancestor.user_id,
                entry_type=credit_type,
                amount=amount,
                level_depth=depth,
                ref=f"order:{order_id}:L{depth}",
                description=f"Level {depth} commission from order {order_id}"
            ))
        else:
            reason = "ineligible upline" if ancestor is not None else "no upline"
            lines.append(CommissionLine(
                user_id=None,
                entry_type=entry_types.ROLLUP_TO_COMPANY,
                amount=amount,
                level_depth=depth,
                ref=f"order:{order_id}:L{depth}:rollup",
                description=f"Level {depth} of order {order_id} rolled up ({reason})"
            ))

    pool_contribution = sponsors_pot - allocated
    if pool_contribution > 0:
        lines.append(CommissionLine(
            user_id=None,
            entry_type=entry_types.POOL_CONTRIBUTION,
            amount=pool_contribution,
            ref=f"order:{order_id}:pool",
            description=f"Turnover pool contribution from order {order_id}"
        ))

    total = sum(line.amount for line in lines) + self_pot
    if total != mlm_value:
        logger.error(f"Order ID: {order_id} - plan total {total} does not match mlm_value {mlm_value}")
        raise LedgerInvariantError(f"Commission plan for order {order_id} sums to {total}, expected {mlm_value}")

    installments: List[InstallmentPlan] = []
    if self_pot > 0:
        if paid_at is None:
            raise ValueError("paid_at is required to schedule self income installments")
        installments = build_installment_plan(order_id=order_id, self_pot=self_pot, paid_at=paid_at)

    return CommissionPlan(
        order_id=order_id,
        mlm_value=mlm_value,
        is_joining_order=is_joining_order,
        company_cut=company_cut,
        sponsors_pot=sponsors_pot,
        self_pot=self_pot,
        pool_contribution=pool_contribution,
        lines=lines,
        installments=installments
    )
