from pydantic import BaseModel
from typing import Optional, Dict

class HierarchyMember(BaseModel):
    user_id: int
    email: str
    full_name: Optional[str] = None
    referral_code: Optional[str] = None
    is_active: bool
    depth: int

class NetworkStats(BaseModel):
    user_id: int
    direct_referrals: int
    team_size: int
    members_by_depth: Dict[int, int] = {}
    team_count: int
    pool_level: int
    is_eligible_repurchase: bool
