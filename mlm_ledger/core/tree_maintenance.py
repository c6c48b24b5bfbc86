import logging

from sqlalchemy.orm import Session

from mlm_ledger.core import jobs
from mlm_ledger.core.activation import insert_hierarchy, walk_sponsor_chain
from mlm_ledger.core.exceptions import UserNotFound
from mlm_ledger.crud import crud_hierarchy, crud_user
from mlm_ledger.db.session import atomic
from mlm_ledger.models.user import User
from mlm_ledger.schemas.jobs import TreeHealthReport

logger = logging.getLogger(__name__)


def rebuild_hierarchy(db: Session, user_id: int) -> int:
    """Drop and re-create a user's upline rows from the sponsor chain."""
    with atomic(db):
        user = crud_user.get_user_for_update(db, user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found")
        removed = crud_hierarchy.delete_ancestors_of(db, descendant_id=user.id)
        created = insert_hierarchy(db, user)
    logger.info(f"Rebuilt hierarchy for user {user_id}: removed {removed}, created {created}")
    return created


async def check_tree_health(db: Session, *, repair: bool = False) -> TreeHealthReport:
    job_run = jobs.start_job(db, jobs.TREE_MAINTENANCE)
    report = TreeHealthReport(job_run_id=job_run.id)
    try:
        users = db.query(User).filter(User.is_active == True).order_by(User.id).all()
        for user in users:
            report.users_checked += 1
            expected = {depth: ancestor_id for depth, ancestor_id in walk_sponsor_chain(db, user)}
            stored = crud_hierarchy.get_ancestor_map(db, descendant_id=user.id)
            if expected == stored:
                continue
            if user.sponsor_id is not None and not stored:
                report.orphaned_users.append(user.id)
                logger.warning(f"User {user.id} has a sponsor but no hierarchy rows")
            else:
                report.inconsistent_users.append(user.id)
                logger.warning(f"User {user.id} hierarchy {stored} does not match sponsor chain {expected}")

        if repair:
            for user_id in report.orphaned_users + report.inconsistent_users:
                rebuild_hierarchy(db, user_id)
                report.repaired += 1
    except Exception as e:
        jobs.fail_job(db, job_run, e)
        raise

    healthy = not (report.orphaned_users or report.inconsistent_users)
    status = "success" if healthy or report.repaired else "partial_success"
    jobs.finish_job(db, job_run, status=status, details=report.model_dump(exclude={"job_run_id"}))
    return report
