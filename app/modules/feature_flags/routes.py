from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.feature_flags.schemas import FeatureFlagCreate, FeatureFlagUpdate, FeatureFlagResponse
from app.modules.feature_flags.service import FeatureFlagService
from app.core.dependencies import get_current_user, get_user_type, require_permission
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/feature-flags", tags=["feature_flags"])


def get_flag_service(supabase: Client = Depends(get_supabase)) -> FeatureFlagService:
    return FeatureFlagService(supabase)


@router.get("", response_model=List[FeatureFlagResponse])
async def list_flags(
    user_data: Dict = Depends(require_permission("feature_flags:read")),
    service: FeatureFlagService = Depends(get_flag_service)
):
    return service.list_flags()


@router.get("/evaluate", response_model=Dict[str, bool])
async def evaluate_flags(
    user_data: Dict = Depends(get_current_user),
    service: FeatureFlagService = Depends(get_flag_service)
):
    """Map of flag key to whether it is on for the caller"""
    return service.evaluate_all(user_data["id"], get_user_type(user_data))


@router.post("", response_model=FeatureFlagResponse, status_code=201)
async def create_flag(
    flag_data: FeatureFlagCreate,
    user_data: Dict = Depends(require_permission("feature_flags:manage")),
    service: FeatureFlagService = Depends(get_flag_service)
):
    return service.create_flag(flag_data)


@router.put("/{flag_key}", response_model=FeatureFlagResponse)
async def update_flag(
    flag_key: str,
    flag_data: FeatureFlagUpdate,
    user_data: Dict = Depends(require_permission("feature_flags:manage")),
    service: FeatureFlagService = Depends(get_flag_service)
):
    return service.update_flag(flag_key, flag_data)
