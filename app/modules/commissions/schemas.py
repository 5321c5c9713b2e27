from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, List
from datetime import datetime


class CommissionBreakdown(BaseModel):
    transaction_amount: float
    platform_commission: float
    business_payout: float
    agent_commission: float


class AgentCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    recruiter_code: Optional[str] = None


class AgentResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    referral_code: str
    tier: str = "bronze"
    commission_rate: float
    recruited_by_agent_id: Optional[str] = None
    lifetime_referrals: int = 0
    total_earned: float = 0
    total_pending: float = 0
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NextAgentTier(BaseModel):
    tier: str
    referrals_needed: int
    commission_rate: float


class AgentDashboard(BaseModel):
    agent: AgentResponse
    next_tier: Optional[NextAgentTier] = None
    pending_total: float = 0
    approved_total: float = 0
    paid_total: float = 0
    team_size: int = 0


class ReferralCreate(BaseModel):
    referral_code: str = Field(min_length=1)
    referred_user_id: Optional[str] = None
    referred_user_type: Literal["customer", "business"] = "business"


class CommissionResponse(BaseModel):
    id: str
    sales_agent_id: str
    referral_id: Optional[str] = None
    amount: float
    commission_type: str
    tier_level: int = 1
    status: str = "pending"
    paid_date: Optional[datetime] = None
    payment_reference: Optional[str] = None

    class Config:
        from_attributes = True


class ReferralResult(BaseModel):
    referral_id: str
    sales_agent_id: str
    agent_tier: str
    commissions: List[CommissionResponse] = []


class CommissionStatusUpdate(BaseModel):
    status: Literal["pending", "approved", "processing", "paid", "cancelled"]
    payment_reference: Optional[str] = None
