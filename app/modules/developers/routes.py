from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_service_supabase
from app.modules.developers.gateway import ApiGateway, get_gateway, extract_api_key, client_ip, require_api_key
from app.modules.developers.schemas import (
    DeveloperIdentity, ValidateRequest, ValidateResponse, UsageRequest, ApiKeyCreate, ApiKeyCreated, ApiKeyResponse
)
from app.modules.developers.service import DeveloperService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/developers", tags=["developers"])


def get_developer_service(supabase: Client = Depends(get_service_supabase)) -> DeveloperService:
    return DeveloperService(supabase)


@router.post("/validate", response_model=ValidateResponse)
async def validate_key(
    body: ValidateRequest,
    request: Request,
    gateway: ApiGateway = Depends(get_gateway)
):
    """Authenticate an API key, enforce its rate limit and optional scope"""
    api_key = extract_api_key(request.headers.get("authorization"), request.headers.get("x-api-key"))
    developer = gateway.validate(api_key, body.scope)
    return ValidateResponse(developer=developer)


@router.post("/usage")
async def log_usage(
    body: UsageRequest,
    request: Request,
    developer: DeveloperIdentity = Depends(require_api_key()),
    gateway: ApiGateway = Depends(get_gateway)
):
    """Bill units against the calling key for a call it reports"""
    gateway.log_usage(
        developer,
        endpoint=body.endpoint,
        method=body.method.upper(),
        response_status=body.response_status,
        latency_ms=body.latency_ms,
        billed_units=body.billed_units,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return {"success": True}


@router.post("/keys", response_model=ApiKeyCreated, status_code=201)
async def create_key(
    key_data: ApiKeyCreate,
    user_data: Dict = Depends(get_current_user),
    service: DeveloperService = Depends(get_developer_service)
):
    """Create an API key; the raw key is only shown in this response"""
    return service.create_key(user_data["id"], key_data)


@router.get("/keys", response_model=List[ApiKeyResponse])
async def list_keys(
    user_data: Dict = Depends(get_current_user),
    service: DeveloperService = Depends(get_developer_service)
):
    return service.list_keys(user_data["id"])


@router.delete("/keys/{key_id}", status_code=204)
async def revoke_key(
    key_id: str,
    user_data: Dict = Depends(get_current_user),
    service: DeveloperService = Depends(get_developer_service)
):
    service.revoke_key(user_data["id"], key_id)
    return None
