from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.loyalty.schemas import (
    LoyaltySummary, RewardCreate, RewardResponse, RedemptionResponse, KarmaStatus, DecayRunResult
)
from app.modules.loyalty.service import LoyaltyService
from app.core.dependencies import get_current_user, require_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/loyalty", tags=["loyalty"])


def get_loyalty_service(supabase: Client = Depends(get_supabase)) -> LoyaltyService:
    return LoyaltyService(supabase)


@router.get("/me", response_model=LoyaltySummary)
async def get_my_points(
    user_data: Dict = Depends(get_current_user),
    service: LoyaltyService = Depends(get_loyalty_service)
):
    """Per-business balances, total, tier and progress to the next tier"""
    return service.get_summary(user_data["id"])


@router.get("/rewards", response_model=List[RewardResponse])
async def list_rewards(
    business_id: Optional[str] = None,
    service: LoyaltyService = Depends(get_loyalty_service)
):
    return service.list_rewards(business_id)


@router.post("/rewards", response_model=RewardResponse, status_code=201)
async def create_reward(
    reward_data: RewardCreate,
    user_data: Dict = Depends(require_permission("loyalty:manage")),
    service: LoyaltyService = Depends(get_loyalty_service)
):
    return service.create_reward(reward_data)


@router.post("/rewards/{reward_id}/redeem", response_model=RedemptionResponse)
async def redeem_reward(
    reward_id: str,
    user_data: Dict = Depends(get_current_user),
    service: LoyaltyService = Depends(get_loyalty_service)
):
    return service.redeem_reward(reward_id, user_data["id"])


@router.get("/karma", response_model=KarmaStatus)
async def get_my_karma(
    user_data: Dict = Depends(get_current_user),
    service: LoyaltyService = Depends(get_loyalty_service)
):
    return service.get_karma(user_data["id"])


@router.post("/karma/decay", response_model=DecayRunResult)
async def run_karma_decay(
    user_data: Dict = Depends(require_permission("loyalty:decay")),
    service: LoyaltyService = Depends(get_loyalty_service)
):
    """Run one monthly decay pass now"""
    return service.run_karma_decay()
