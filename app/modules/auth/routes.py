from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    SetAdminRequest
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_current_user, is_admin, get_user_type, get_user_permissions
from app.config.permissions_config import get_permission_matrix
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/auth", tags=["auth"])

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new customer, business owner, sales agent or corporate sponsor"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
):
    """Current user, resolved user type and permissions (for frontend UI)."""
    if is_admin(current_user):
        permissions: List[str] = [p["name"] for p in get_permission_matrix()["permissions"]]
    else:
        permissions = get_user_permissions(current_user["id"], supabase)
    return {**current_user, "user_type": get_user_type(current_user), "permissions": permissions}


@router.post("/set-admin", status_code=200)
async def set_admin(
    request: SetAdminRequest,
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Grant or revoke admin status (admins only)"""
    if not is_admin(current_user):
        raise HTTPException(status_code=403, detail="Only admins can change admin status")

    service.set_admin(request.user_id, request.is_admin)
    return {
        "message": f"User {request.user_id} admin status set to {request.is_admin}",
        "user_id": request.user_id,
        "is_admin": request.is_admin
    }
