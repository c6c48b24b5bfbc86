import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mlm_ledger.core.activation import activate_user, refresh_repurchase_eligibility
from mlm_ledger.core.commissions_calculator import calculate_commission_plan
from mlm_ledger.core.exceptions import InvalidOrderState, OrderNotFound
from mlm_ledger.core.pool import add_to_turnover_pool
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.core.wallet import post_entry
from mlm_ledger.crud import crud_hierarchy, crud_ledger, crud_order, crud_payout
from mlm_ledger.db.session import atomic
from mlm_ledger.models.order import Order, UNPAID_STATUSES
from mlm_ledger.schemas.commission import AncestorEligibility, CommissionResult
from mlm_ledger.schemas.ledger import LedgerEntryCreate

logger = logging.getLogger(__name__)


def _ancestor_eligibility(db: Session, buyer_id: int, is_joining_order: bool) -> List[AncestorEligibility]:
    ancestors = []
    for link in crud_hierarchy.get_ancestors(db, descendant_id=buyer_id):
        ancestor = link.ancestor
        if is_joining_order:
            eligible = bool(ancestor.is_active)
        else:
            eligible = bool(ancestor.is_active) and refresh_repurchase_eligibility(db, ancestor)
        ancestors.append(AncestorEligibility(depth=link.depth, user_id=ancestor.id, eligible=eligible))
    return ancestors


def _recorded_elsewhere(db: Session, order_id: int) -> bool:
    """
    Called after a rolled back IntegrityError. True when another run has
    recorded this order, either fully or by claiming one of its refs.
    """
    order = crud_order.get_order(db, order_id)
    if order is not None and order.commissions_processed_at is not None:
        return True
    return (
        crud_ledger.order_refs_exist(db, order_id=order_id)
        or crud_payout.installments_exist_for_order(db, order_id=order_id)
    )


async def process_paid_order(db: Session, order_id: int) -> CommissionResult:
    """
    Distribute the MLM value of a paid order: company share, upline
    commissions, turnover pool contribution and (for the buyer's first order)
    the self income schedule. Everything is written in one transaction and
    the order is stamped with commissions_processed_at, so repeated calls for
    the same order are no-ops.
    """
    logger.info(f"Starting commission processing for order ID: {order_id}")
    try:
        with atomic(db):
            order: Optional[Order] = crud_order.get_order_for_update(db, order_id)
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found")
            if order.status in UNPAID_STATUSES or order.paid_at is None:
                raise InvalidOrderState(f"Order {order_id} is '{order.status}', commissions need a paid order")
            if order.commissions_processed_at is not None:
                logger.info(f"Order ID: {order_id} already processed at {order.commissions_processed_at}, skipping")
                return CommissionResult(
                    order_id=order_id, status="already_processed", is_joining_order=order.is_joining_order
                )

            activated = activate_user(db, order.user_id)
            if activated:
                order.is_joining_order = True
            is_joining = bool(order.is_joining_order)

            ancestors = _ancestor_eligibility(db, order.user_id, is_joining)
            plan = calculate_commission_plan(
                order_id=order.id,
                mlm_value=order.mlm_value or 0,
                ancestors=ancestors,
                is_joining_order=is_joining,
                paid_at=order.paid_at
            )

            for line in plan.lines:
                post_entry(db, obj_in=LedgerEntryCreate(
                    user_id=line.user_id,
                    order_id=order.id,
                    type=line.entry_type,
                    amount=line.amount,
                    level_depth=line.level_depth,
                    ref=line.ref,
                    description=line.description
                ))
            if plan.pool_contribution > 0:
                add_to_turnover_pool(db, plan.pool_contribution)
            for installment in plan.installments:
                crud_payout.create_installment(db, user_id=order.user_id, order_id=order.id, plan=installment)

            order.commissions_processed_at = utcnow()
            order.user.monthly_purchase = (order.user.monthly_purchase or 0) + (order.total or 0)
            db.add(order)
            db.flush()
    except IntegrityError as e:
        if not _recorded_elsewhere(db, order_id):
            logger.error(f"Order ID: {order_id} - integrity error while recording commissions, rolled back: {e.orig}")
            raise
        # A concurrent run for the same order got there first (duplicate ref).
        logger.warning(f"Order ID: {order_id} - duplicate ref while recording commissions, treating as processed: {e.orig}")
        return CommissionResult(order_id=order_id, status="already_processed")

    status = "processed" if plan.mlm_value > 0 else "nothing_to_distribute"
    result = CommissionResult(
        order_id=order_id,
        status=status,
        is_joining_order=is_joining,
        activated_user=activated,
        credited_total=plan.credited_total,
        company_total=plan.company_total,
        pool_contribution=plan.pool_contribution,
        scheduled_total=sum(i.amount for i in plan.installments),
        entries_created=len(plan.lines)
    )
    logger.info(
        f"Commission processing finished for order ID: {order_id} - credited {result.credited_total}, "
        f"company {result.company_total}, scheduled {result.scheduled_total}"
    )
    return result


async def mark_order_paid(db: Session, order_id: int, paid_at: Optional[datetime] = None) -> CommissionResult:
    """
    Handle the order-paid event: move a pending order to paid, then process
    its commissions. Replaying the event for a paid order only re-runs the
    (idempotent) commission step.
    """
    with atomic(db):
        order = crud_order.get_order_for_update(db, order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found")
        if order.status == "pending":
            order.status = "paid"
            order.paid_at = paid_at or utcnow()
            db.add(order)
            logger.info(f"Order ID: {order_id} marked as paid at {order.paid_at}")
        elif order.status in UNPAID_STATUSES or order.paid_at is None:
            raise InvalidOrderState(f"Order {order_id} is '{order.status}' and cannot be marked paid")
    return await process_paid_order(db, order_id)
