"""
Core dependencies for route protection, permission checks and ownership checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

USER_TYPES = ("customer", "business", "sales_agent", "corporate", "admin")


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (role_ids, permission_names)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def is_admin(user_data: dict) -> bool:
    """Admins are flagged in app_metadata, which only the service role can write"""
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "admin"


def get_user_type(user_data: dict) -> str:
    if is_admin(user_data):
        return "admin"
    user_type = (user_data.get("user_metadata") or {}).get("user_type")
    return user_type if user_type in USER_TYPES else "customer"


def get_user_role_ids(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> List[str]:
    """Return role_ids assigned to the user. Uses request-scoped cache when provided."""
    if cache is not None and "role_ids" in cache:
        return cache["role_ids"]
    try:
        result = supabase.table("user_roles")\
            .select("role_id")\
            .eq("user_id", user_id)\
            .execute()
        ids = list({r["role_id"] for r in result.data}) if result.data else []
    except Exception as e:
        logger.error(f"Error getting user role ids: {e}")
        ids = []
    if cache is not None:
        cache["role_ids"] = ids
    return ids


def get_user_permissions(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> List[str]:
    """Get all permission names granted to a user through their roles."""
    if cache is not None and "permission_names" in cache:
        return cache["permission_names"]
    names: List[str] = []
    try:
        role_ids = get_user_role_ids(user_id, supabase, cache)
        if role_ids:
            result = supabase.table("role_permissions")\
                .select("permission_id, permissions(name)")\
                .in_("role_id", role_ids)\
                .execute()
            found = set()
            for rp in result.data or []:
                if rp.get("permissions") and rp["permissions"].get("name"):
                    found.add(rp["permissions"]["name"])
            names = sorted(found)
    except Exception as e:
        logger.error(f"Error getting user permissions: {e}")
        names = []
    if cache is not None:
        cache["permission_names"] = names
    return names


def has_permission(request: Request, user_data: dict, permission: str, supabase: Client) -> bool:
    if is_admin(user_data):
        return True
    return permission in get_user_permissions(user_data["id"], supabase, _get_request_cache(request))


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(
        request: Request,
        user_data: dict = Depends(get_current_user),
        supabase: Client = Depends(get_supabase)
    ) -> dict:
        if not has_permission(request, user_data, required_permission, supabase):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return user_data
    return check_permission


def check_business_owner(
    business_id: str,
    user_data: dict,
    supabase: Client,
    business: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Return the business row when the caller owns it or is an admin. Optional business dict avoids a second fetch."""
    if business is None:
        result = supabase.table("businesses")\
            .select("*")\
            .eq("id", business_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found"
            )
        business = result.data
    if is_admin(user_data) or business.get("owner_id") == user_data["id"]:
        return business
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must own this business to manage it"
    )
