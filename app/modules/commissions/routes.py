from fastapi import APIRouter, Depends, HTTPException, Query, Request
from app.database.supabase_client import get_supabase
from app.modules.commissions import calculator
from app.modules.commissions.schemas import (
    CommissionBreakdown, AgentCreate, AgentResponse, AgentDashboard, ReferralCreate, ReferralResult,
    CommissionResponse, CommissionStatusUpdate
)
from app.modules.commissions.service import CommissionService
from app.core.dependencies import get_current_user, require_permission, has_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/commissions", tags=["commissions"])


def get_commission_service(supabase: Client = Depends(get_supabase)) -> CommissionService:
    return CommissionService(supabase)


@router.get("/breakdown", response_model=CommissionBreakdown)
async def get_breakdown(amount: float = Query(ge=0)):
    """Platform commission, business payout and agent commission for an amount"""
    return {k: float(v) for k, v in calculator.commission_breakdown(amount).items()}


@router.post("/agents", response_model=AgentResponse, status_code=201)
async def register_agent(
    agent_data: AgentCreate,
    user_data: Dict = Depends(get_current_user),
    service: CommissionService = Depends(get_commission_service)
):
    return service.register_agent(agent_data, user_data["id"])


@router.get("/agents/me", response_model=AgentDashboard)
async def get_agent_dashboard(
    user_data: Dict = Depends(get_current_user),
    service: CommissionService = Depends(get_commission_service)
):
    return service.get_dashboard(user_data["id"])


@router.get("/mine", response_model=List[CommissionResponse])
async def list_my_commissions(
    status: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: CommissionService = Depends(get_commission_service)
):
    return service.list_commissions(user_data["id"], status)


@router.post("/referrals", response_model=ReferralResult, status_code=201)
async def record_referral(
    request: Request,
    referral_data: ReferralCreate,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    service: CommissionService = Depends(get_commission_service)
):
    """Record a referral for the caller; naming another referred user needs commissions:approve"""
    referred_user_id = referral_data.referred_user_id or user_data["id"]
    if referred_user_id != user_data["id"] and not has_permission(request, user_data, "commissions:approve", supabase):
        raise HTTPException(
            status_code=403,
            detail="Insufficient permissions. Required: commissions:approve"
        )
    return service.record_referral(referral_data, referred_user_id)


@router.post("/{commission_id}/status", response_model=CommissionResponse)
async def update_commission_status(
    commission_id: str,
    update: CommissionStatusUpdate,
    user_data: Dict = Depends(require_permission("commissions:approve")),
    service: CommissionService = Depends(get_commission_service)
):
    return service.update_status(commission_id, update)
