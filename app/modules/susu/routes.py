from fastapi import APIRouter, Depends, HTTPException, Request, status
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.susu.schemas import ContributionRequest, ContributionResult, PayoutResult, AdvanceResult, CircleStatus
from app.modules.susu.service import SusuService
from app.core.dependencies import get_current_user, get_user_permissions, is_admin, _get_request_cache
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/susu", tags=["susu"])


def get_susu_service(supabase: Client = Depends(get_service_supabase)) -> SusuService:
    return SusuService(supabase)


def check_circle_manager(
    request: Request,
    circle_id: str,
    permission: str,
    user_data: Dict,
    service: SusuService,
    supabase: Client
):
    """Organizer of the circle, an admin, or a holder of the permission"""
    if is_admin(user_data):
        return
    circle, _ = service.get_circle(circle_id)
    if circle.get("created_by") == user_data["id"]:
        return
    if permission in get_user_permissions(user_data["id"], supabase, _get_request_cache(request)):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only the circle organizer can manage payouts"
    )


@router.get("/{circle_id}", response_model=CircleStatus)
async def get_circle_status(
    circle_id: str,
    user_data: Dict = Depends(get_current_user),
    service: SusuService = Depends(get_susu_service)
):
    return service.get_status(circle_id)


@router.post("/{circle_id}/contribute", response_model=ContributionResult)
async def contribute(
    circle_id: str,
    contribution: ContributionRequest,
    user_data: Dict = Depends(get_current_user),
    service: SusuService = Depends(get_susu_service)
):
    return service.contribute(circle_id, user_data["id"], contribution.amount)


@router.post("/{circle_id}/release", response_model=PayoutResult)
async def release_payout(
    circle_id: str,
    request: Request,
    user_data: Dict = Depends(get_current_user),
    service: SusuService = Depends(get_susu_service),
    supabase: Client = Depends(get_supabase)
):
    check_circle_manager(request, circle_id, "susu:release", user_data, service, supabase)
    return service.release_payout(circle_id)


@router.post("/{circle_id}/advance", response_model=AdvanceResult)
async def advance_round(
    circle_id: str,
    request: Request,
    user_data: Dict = Depends(get_current_user),
    service: SusuService = Depends(get_susu_service),
    supabase: Client = Depends(get_supabase)
):
    check_circle_manager(request, circle_id, "susu:advance", user_data, service, supabase)
    return service.advance_round(circle_id)
