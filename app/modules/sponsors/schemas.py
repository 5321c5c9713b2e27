from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from datetime import datetime


class SponsorBenefit(BaseModel):
    id: Optional[str] = None
    subscription_id: str
    benefit_type: str
    benefit_value: Dict[str, Any] = {}

    class Config:
        from_attributes = True


class SponsorResponse(BaseModel):
    id: str
    user_id: str
    company_name: str
    tier: str
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False

    class Config:
        from_attributes = True


class SponsorDetail(BaseModel):
    subscription: SponsorResponse
    benefits: List[SponsorBenefit] = []
