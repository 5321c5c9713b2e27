from pydantic import BaseModel
from typing import Optional, List


class CheckoutRequest(BaseModel):
    price_id: Optional[str] = None
    tier: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    user_type: str = "customer"


class CheckoutResponse(BaseModel):
    tier: Optional[str] = None
    session_id: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None


class PortalRequest(BaseModel):
    return_url: Optional[str] = None


class PortalResponse(BaseModel):
    url: str


class SubscriptionTier(BaseModel):
    id: str
    name: str
    price: float
    features: List[str] = []


class WebhookAck(BaseModel):
    received: bool = True
