from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from typing import List, Dict

from mlm_ledger.core.config import MAX_HIERARCHY_DEPTH
from mlm_ledger.models.hierarchy import Hierarchy

def get_ancestors(db: Session, *, descendant_id: int, max_depth: int = MAX_HIERARCHY_DEPTH) -> List[Hierarchy]:
    """
    Upline rows for a user, nearest first, with the ancestor user loaded.
    """
    return (
        db.query(Hierarchy)
        .options(joinedload(Hierarchy.ancestor))
        .filter(Hierarchy.descendant_id == descendant_id, Hierarchy.depth <= max_depth)
        .order_by(Hierarchy.depth)
        .all()
    )

def get_ancestor_map(db: Session, *, descendant_id: int) -> Dict[int, int]:
    """{depth: ancestor_id} as currently stored."""
    rows = db.query(Hierarchy.depth, Hierarchy.ancestor_id).filter(Hierarchy.descendant_id == descendant_id).all()
    return {depth: ancestor_id for depth, ancestor_id in rows}

def get_descendants(
    db: Session, *, ancestor_id: int, max_depth: int = MAX_HIERARCHY_DEPTH, skip: int = 0, limit: int = 100
) -> List[Hierarchy]:
    return (
        db.query(Hierarchy)
        .options(joinedload(Hierarchy.descendant))
        .filter(Hierarchy.ancestor_id == ancestor_id, Hierarchy.depth <= max_depth)
        .order_by(Hierarchy.depth, Hierarchy.descendant_id)
        .offset(skip)
        .limit(limit)
        .all()
    )

def count_descendants_by_depth(db: Session, *, ancestor_id: int) -> Dict[int, int]:
    rows = (
        db.query(Hierarchy.depth, func.count(Hierarchy.id))
        .filter(Hierarchy.ancestor_id == ancestor_id)
        .group_by(Hierarchy.depth)
        .all()
    )
    return {depth: count for depth, count in rows}

def create_link(db: Session, *, ancestor_id: int, descendant_id: int, depth: int) -> Hierarchy:
    """Adds a closure row. Does not commit."""
    db_obj = Hierarchy(ancestor_id=ancestor_id, descendant_id=descendant_id, depth=depth)
    db.add(db_obj)
    return db_obj

def delete_ancestors_of(db: Session, *, descendant_id: int) -> int:
    """Removes every upline row of a user. Does not commit."""
    return (
        db.query(Hierarchy)
        .filter(Hierarchy.descendant_id == descendant_id)
        .delete(synchronize_session=False)
    )
