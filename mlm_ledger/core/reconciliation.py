import logging

from sqlalchemy.orm import Session

from mlm_ledger.core import jobs
from mlm_ledger.crud import crud_ledger, crud_order, crud_payout, crud_user, crud_withdrawal
from mlm_ledger.db.session import atomic
from mlm_ledger.models.user import User
from mlm_ledger.schemas.jobs import ReconciliationReport, WalletMismatch

logger = logging.getLogger(__name__)


async def reconcile_wallets(db: Session, *, repair: bool = False) -> ReconciliationReport:
    """
    Compare every wallet with its ledger sum and look for money movements
    that lost their ledger entry. With repair=True mismatched wallets are
    reset to the ledger sum; nothing else is changed.
    """
    job_run = jobs.start_job(db, jobs.RECONCILIATION)
    report = ReconciliationReport(job_run_id=job_run.id)
    try:
        ledger_balances = crud_ledger.get_ledger_balances(db)
        for user in db.query(User).order_by(User.id).all():
            report.users_checked += 1
            ledger_balance = ledger_balances.get(user.id, 0)
            if user.wallet_balance != ledger_balance:
                report.wallet_mismatches.append(WalletMismatch(
                    user_id=user.id,
                    wallet_balance=user.wallet_balance,
                    ledger_balance=ledger_balance,
                    discrepancy=user.wallet_balance - ledger_balance
                ))
                logger.warning(f"User {user.id} wallet {user.wallet_balance} != ledger {ledger_balance}")

        installment_refs = {i.id: f"instalment:{i.id}" for i in crud_payout.get_processed_installments(db)}
        found = crud_ledger.get_existing_refs(db, installment_refs.values())
        report.installments_missing_entries = [i for i, ref in installment_refs.items() if ref not in found]

        withdrawal_refs = {w.id: f"withdrawal:{w.id}" for w in crud_withdrawal.get_approved_withdrawals(db)}
        found = crud_ledger.get_existing_refs(db, withdrawal_refs.values())
        report.withdrawals_missing_debits = [w for w, ref in withdrawal_refs.items() if ref not in found]

        report.unprocessed_paid_orders = crud_order.get_paid_unprocessed_order_ids(db)

        if repair and report.wallet_mismatches:
            with atomic(db):
                for mismatch in report.wallet_mismatches:
                    user = crud_user.get_user_for_update(db, mismatch.user_id)
                    user.wallet_balance = mismatch.ledger_balance
                    db.add(user)
                    report.repaired += 1
            logger.info(f"Reset {report.repaired} wallets to their ledger balance")
    except Exception as e:
        jobs.fail_job(db, job_run, e)
        raise

    status = "success" if report.is_clean or (repair and _only_wallet_issues(report)) else "partial_success"
    jobs.finish_job(db, job_run, status=status, details=report.model_dump(mode="json", exclude={"job_run_id"}))
    return report


def _only_wallet_issues(report: ReconciliationReport) -> bool:
    return not (
        report.installments_missing_entries
        or report.withdrawals_missing_debits
        or report.unprocessed_paid_orders
    )
