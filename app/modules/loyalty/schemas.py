from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class PointsBalance(BaseModel):
    business_id: str
    points: int


class LoyaltySummary(BaseModel):
    customer_id: str
    total_points: int
    tier: str
    next_tier: Optional[str] = None
    points_to_next_tier: Optional[int] = None
    current_streak: int = 0
    balances: List[PointsBalance] = []


class RewardCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    points_cost: int = Field(gt=0)
    business_id: Optional[str] = None
    image_url: Optional[str] = None
    is_global: bool = False


class RewardResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    points_cost: int
    business_id: Optional[str] = None
    image_url: Optional[str] = None
    is_global: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedemptionResponse(BaseModel):
    redemption_id: str
    reward_id: str
    points_spent: int
    remaining_points: int
    message: str


class KarmaStatus(BaseModel):
    user_id: str
    score: float
    level: str
    last_decay_at: Optional[datetime] = None
    next_decay_at: Optional[datetime] = None
    decay_due: bool = False


class DecayRunResult(BaseModel):
    profiles_checked: int
    profiles_decayed: int
