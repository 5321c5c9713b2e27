from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.businesses.schemas import (
    BusinessCreate, BusinessUpdate, BusinessResponse, BusinessSuspendRequest
)
from app.modules.businesses.service import BusinessService
from app.core.dependencies import get_current_user, require_permission, check_business_owner
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/businesses", tags=["businesses"])


def get_business_service(supabase: Client = Depends(get_supabase)) -> BusinessService:
    return BusinessService(supabase)


@router.post("", response_model=BusinessResponse, status_code=201)
async def create_business(
    business_data: BusinessCreate,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    """List a new business; it stays unverified until an admin verifies it"""
    return service.create_business(business_data, user_data["id"])


@router.get("", response_model=List[BusinessResponse])
async def list_businesses(
    category: Optional[str] = None,
    city: Optional[str] = None,
    verified_only: bool = False,
    limit: int = 20,
    offset: int = 0,
    service: BusinessService = Depends(get_business_service)
):
    return service.list_businesses(
        category=category, city=city, verified_only=verified_only, limit=limit, offset=offset
    )


@router.get("/mine", response_model=List[BusinessResponse])
async def list_my_businesses(
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service)
):
    return service.list_businesses(owner_id=user_data["id"], limit=100)


@router.get("/{business_id}", response_model=BusinessResponse)
async def get_business(
    business_id: str,
    service: BusinessService = Depends(get_business_service)
):
    return service.get_business_by_id(business_id)


@router.put("/{business_id}", response_model=BusinessResponse)
async def update_business(
    business_id: str,
    business_data: BusinessUpdate,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
    supabase: Client = Depends(get_supabase)
):
    """Update business (owner or admin)"""
    check_business_owner(business_id, user_data, supabase)
    return service.update_business(business_id, business_data)


@router.post("/{business_id}/verify", response_model=BusinessResponse)
async def verify_business(
    business_id: str,
    user_data: Dict = Depends(require_permission("businesses:verify")),
    service: BusinessService = Depends(get_business_service)
):
    return service.set_verified(business_id, True)


@router.post("/{business_id}/suspend", response_model=BusinessResponse)
async def suspend_business(
    business_id: str,
    request: BusinessSuspendRequest,
    user_data: Dict = Depends(require_permission("businesses:suspend")),
    service: BusinessService = Depends(get_business_service)
):
    return service.set_suspended(business_id, request.suspended, request.reason)


@router.delete("/{business_id}", status_code=204)
async def delete_business(
    business_id: str,
    user_data: Dict = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
    supabase: Client = Depends(get_supabase)
):
    """Delete business (owner or admin)"""
    check_business_owner(business_id, user_data, supabase)
    service.delete_business(business_id)
    return None
