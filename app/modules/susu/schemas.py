from pydantic import BaseModel, Field
from typing import Optional


class ContributionRequest(BaseModel):
    amount: float = Field(gt=0)


class ContributionResult(BaseModel):
    escrow_id: str
    round_number: int
    amount_held: float
    platform_fee: float
    recipient_id: Optional[str] = None
    message: str


class PayoutResult(BaseModel):
    recipient_id: str
    round: int
    total_contributed: float
    platform_fee: float
    net_payout: float
    message: str


class AdvanceResult(BaseModel):
    previous_round: int
    new_round: int
    circle_completed: bool
    message: str


class CircleStatus(BaseModel):
    circle_id: str
    circle_name: str
    status: str
    current_round: int
    total_rounds: int
    contribution_amount: float
    platform_fee_rate: float
    current_recipient_id: Optional[str] = None
    contributions_this_round: int
    members_count: int
