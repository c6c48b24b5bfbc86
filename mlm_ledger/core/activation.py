import logging
import secrets
from typing import List, Tuple

from sqlalchemy.orm import Session

from mlm_ledger.core import config
from mlm_ledger.core.exceptions import ReferralCodeGenerationError, UserNotFound
from mlm_ledger.core.timeutils import utcnow
from mlm_ledger.crud import crud_hierarchy, crud_user
from mlm_ledger.models.user import User

logger = logging.getLogger(__name__)


def generate_referral_code(db: Session) -> str:
    for attempt in range(1, config.REFERRAL_CODE_MAX_ATTEMPTS + 1):
        code = "".join(secrets.choice(config.REFERRAL_CODE_ALPHABET) for _ in range(config.REFERRAL_CODE_LENGTH))
        if not crud_user.referral_code_exists(db, code):
            return code
        logger.warning(f"Referral code collision on attempt {attempt}: {code}")
    raise ReferralCodeGenerationError(
        f"Could not generate a unique referral code after {config.REFERRAL_CODE_MAX_ATTEMPTS} attempts"
    )


def walk_sponsor_chain(db: Session, user: User, max_depth: int = config.MAX_HIERARCHY_DEPTH) -> List[Tuple[int, int]]:
    """
    Return [(depth, sponsor_id)] from the direct sponsor upwards.
    Stops at the root, at max_depth, or when the chain loops back on itself.
    """
    chain: List[Tuple[int, int]] = []
    seen = {user.id}
    sponsor_id = user.sponsor_id
    depth = 1
    while sponsor_id is not None and depth <= max_depth:
        if sponsor_id in seen:
            logger.warning(f"Sponsor cycle detected above user {user.id} at user {sponsor_id}, stopping walk")
            break
        sponsor = crud_user.get_user(db, sponsor_id)
        if sponsor is None:
            logger.warning(f"User {user.id} references missing sponsor {sponsor_id} at depth {depth}")
            break
        seen.add(sponsor_id)
        chain.append((depth, sponsor_id))
        sponsor_id = sponsor.sponsor_id
        depth += 1
    return chain


def insert_hierarchy(db: Session, user: User) -> int:
    """Add any missing closure rows for the user's sponsor chain. Returns rows created."""
    existing = crud_hierarchy.get_ancestor_map(db, descendant_id=user.id)
    created = 0
    for depth, ancestor_id in walk_sponsor_chain(db, user):
        if existing.get(depth) == ancestor_id:
            continue
        crud_hierarchy.create_link(db, ancestor_id=ancestor_id, descendant_id=user.id, depth=depth)
        created += 1
    if created:
        db.flush()
    return created


def is_repurchase_eligible(db: Session, user: User) -> bool:
    """3-3 rule: at least 3 directs, and at least 3 of them with 3+ directs of their own."""
    direct_ids = crud_user.get_direct_referral_ids(db, sponsor_id=user.id)
    if len(direct_ids) < config.REPURCHASE_MIN_DIRECTS:
        return False
    qualified = 0
    for direct_id in direct_ids:
        if crud_user.count_direct_referrals(db, sponsor_id=direct_id) >= config.REPURCHASE_MIN_DIRECTS:
            qualified += 1
            if qualified >= config.REPURCHASE_MIN_QUALIFIED_DIRECTS:
                return True
    return False


def refresh_repurchase_eligibility(db: Session, user: User) -> bool:
    eligible = is_repurchase_eligible(db, user)
    if user.is_eligible_repurchase != eligible:
        logger.info(f"User {user.id} repurchase eligibility changed to {eligible}")
        user.is_eligible_repurchase = eligible
        db.add(user)
    return eligible


def pool_level_for(team_count: int) -> int:
    level = 0
    for candidate, required in sorted(config.POOL_LEVEL_TEAM_REQUIREMENTS.items()):
        if team_count >= required:
            level = candidate
    return level


def recalculate_teams(db: Session, user: User) -> None:
    """
    Recompute team_count for the user and every sponsor above them.
    team_count = completed teams of activated directs + team_count of all directs.
    Pool levels only ever go up.
    """
    current = user
    seen = set()
    while current is not None and current.id not in seen:
        seen.add(current.id)
        activated = crud_user.count_direct_referrals(db, sponsor_id=current.id, active_only=True)
        directs = crud_user.get_direct_referrals(db, sponsor_id=current.id, limit=None)
        team_count = activated // config.TEAM_SIZE + sum(d.team_count or 0 for d in directs)
        if team_count != current.team_count:
            current.team_count = team_count
        level = pool_level_for(team_count)
        if level > (current.pool_level or 0):
            logger.info(f"User {current.id} reached pool level {level} with {team_count} teams")
            current.pool_level = level
        db.add(current)
        db.flush()
        current = crud_user.get_user(db, current.sponsor_id) if current.sponsor_id else None


def activate_user(db: Session, user_id: int) -> bool:
    """
    Activate a user on their first paid order. Runs inside the caller's
    transaction. Returns False when the user was already active.
    """
    user = crud_user.get_user_for_update(db, user_id)
    if user is None:
        raise UserNotFound(f"User {user_id} not found")
    if user.is_active and user.referral_code:
        return False

    if not user.referral_code:
        user.referral_code = generate_referral_code(db)
    user.is_active = True
    user.activated_at = user.activated_at or utcnow()
    db.add(user)
    db.flush()

    created = insert_hierarchy(db, user)
    recalculate_teams(db, user)
    if user.sponsor_id:
        sponsor = crud_user.get_user(db, user.sponsor_id)
        if sponsor is not None:
            refresh_repurchase_eligibility(db, sponsor)
            if sponsor.sponsor_id:
                grand_sponsor = crud_user.get_user(db, sponsor.sponsor_id)
                if grand_sponsor is not None:
                    refresh_repurchase_eligibility(db, grand_sponsor)
    logger.info(f"Activated user {user.id} with referral code {user.referral_code}, {created} hierarchy rows")
    return True
