from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from mlm_ledger.core.dependencies import get_current_user, get_current_active_superuser
from mlm_ledger.core.tree_maintenance import rebuild_hierarchy
from mlm_ledger.crud import crud_hierarchy, crud_user
from mlm_ledger.db.session import get_db
from mlm_ledger.models.user import User
from mlm_ledger.schemas.network import HierarchyMember, NetworkStats

router = APIRouter()

def _member(user: User, depth: int) -> HierarchyMember:
    return HierarchyMember(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        referral_code=user.referral_code,
        is_active=user.is_active,
        depth=depth
    )

@router.get("/me/uplines", response_model=List[HierarchyMember])
def read_my_uplines(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Sponsors above the current member, nearest first (at most 5 levels).
    """
    return [_member(link.ancestor, link.depth) for link in crud_hierarchy.get_ancestors(db, descendant_id=current_user.id)]

@router.get("/me/downlines", response_model=List[HierarchyMember])
def read_my_downlines(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    max_depth: int = Query(5, ge=1, le=5),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500)
):
    links = crud_hierarchy.get_descendants(
        db, ancestor_id=current_user.id, max_depth=max_depth, skip=skip, limit=limit
    )
    return [_member(link.descendant, link.depth) for link in links]

@router.get("/me/stats", response_model=NetworkStats)
def read_my_network_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    by_depth = crud_hierarchy.count_descendants_by_depth(db, ancestor_id=current_user.id)
    return NetworkStats(
        user_id=current_user.id,
        direct_referrals=crud_user.count_direct_referrals(db, sponsor_id=current_user.id),
        team_size=sum(by_depth.values()),
        members_by_depth=by_depth,
        team_count=current_user.team_count,
        pool_level=current_user.pool_level,
        is_eligible_repurchase=current_user.is_eligible_repurchase
    )

@router.post("/{user_id}/rebuild", tags=["Admin Network"])
def rebuild_user_hierarchy(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_superuser)
):
    """
    Admin: re-create a member's upline rows from their sponsor chain.
    """
    created = rebuild_hierarchy(db, user_id)
    return {"user_id": user_id, "rows_created": created}
