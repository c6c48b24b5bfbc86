from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime

class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = Field(default=None, max_length=255)

class UserCreate(UserBase):
    sponsor_referral_code: Optional[str] = Field(default=None, max_length=16) # Referral code of the sponsor, if any

class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=255)
    is_superuser: Optional[bool] = None

class UserInDBBase(UserBase):
    id: int
    referral_code: Optional[str] = None
    sponsor_id: Optional[int] = None
    wallet_balance: int
    monthly_purchase: int
    is_active: bool
    activated_at: Optional[datetime] = None
    kyc_status: str
    is_eligible_repurchase: bool
    team_count: int
    pool_level: int
    is_superuser: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class User(UserInDBBase):
    pass

class UserWithReferrals(User):
    referrals: List[User] = []
