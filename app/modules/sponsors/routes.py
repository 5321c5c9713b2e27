from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.sponsors.schemas import SponsorResponse, SponsorBenefit, SponsorDetail
from app.modules.sponsors.service import SponsorService
from app.core.dependencies import get_current_user, require_permission
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/sponsors", tags=["sponsors"])


def get_sponsor_service(supabase: Client = Depends(get_supabase)) -> SponsorService:
    return SponsorService(supabase)


@router.get("", response_model=List[SponsorResponse])
async def list_sponsors(
    status: str = "active",
    user_data: Dict = Depends(require_permission("sponsors:read")),
    service: SponsorService = Depends(get_sponsor_service)
):
    return service.list_sponsors(status)


@router.get("/me", response_model=SponsorDetail)
async def get_my_sponsorship(
    user_data: Dict = Depends(get_current_user),
    service: SponsorService = Depends(get_sponsor_service)
):
    return service.get_by_user(user_data["id"])


@router.get("/{subscription_id}/benefits", response_model=List[SponsorBenefit])
async def get_benefits(
    subscription_id: str,
    user_data: Dict = Depends(require_permission("sponsors:read")),
    service: SponsorService = Depends(get_sponsor_service)
):
    return service.get_benefits(subscription_id)
