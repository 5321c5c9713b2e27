"""
API key gateway for the public developer platform.

Keys are only ever stored as SHA-256 hex digests. Validation, per-minute rate limits and
usage billing are delegated to database RPCs; this module maps their answers onto HTTP.
"""
from fastapi import Depends, HTTPException, Request
from app.database.supabase_client import get_service_supabase
from app.modules.developers.schemas import DeveloperIdentity
from app.modules.fraud.detector import sanitize_for_log
from supabase import Client
from typing import Any, Dict, Optional
import hashlib
import logging

logger = logging.getLogger(__name__)


class GatewayError(HTTPException):
    def __init__(self, status_code: int, error_code: str, message: str):
        super().__init__(status_code=status_code, detail={"error": message, "error_code": error_code})
        self.error_code = error_code


def hash_api_key(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def extract_api_key(authorization: Optional[str], x_api_key: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return x_api_key or None


class ApiGateway:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def validate(self, api_key: Optional[str], scope: Optional[str] = None) -> DeveloperIdentity:
        if not api_key:
            raise GatewayError(
                401, "MISSING_API_KEY",
                "Missing API key. Provide via Authorization: Bearer <key> or X-API-Key header."
            )
        try:
            result = self.supabase.rpc("validate_api_key", {"p_key_hash": hash_api_key(api_key)}).execute()
        except Exception as e:
            logger.error(f"API key validation error: {e}")
            raise GatewayError(500, "AUTH_ERROR", "Internal server error during authentication")
        rows = result.data or []
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            raise GatewayError(401, "INVALID_API_KEY", "Invalid or revoked API key")
        developer = rows[0]

        if developer.get("status") != "active":
            raise GatewayError(401, "ACCOUNT_INACTIVE", f"Developer account is {developer.get('status')}")

        limit = developer.get("rate_limit_per_minute") or 60
        try:
            allowed = self.supabase.rpc("check_api_rate_limit", {
                "p_api_key_id": developer["api_key_id"],
                "p_limit_per_minute": limit,
            }).execute().data
        except Exception as e:
            logger.error(f"Rate limit check error: {e}")
            raise GatewayError(500, "RATE_LIMIT_ERROR", "Internal server error during rate limit check")
        if not allowed:
            raise GatewayError(429, "RATE_LIMIT_EXCEEDED", f"Rate limit exceeded. Maximum {limit} requests per minute.")

        scopes = developer.get("scopes") or []
        if scope and scope not in scopes:
            raise GatewayError(403, "SCOPE_DENIED", f"API key does not have access to scope: {scope}")

        return DeveloperIdentity(
            developer_id=developer["developer_id"],
            api_key_id=developer["api_key_id"],
            tier=developer.get("tier") or "free",
            status=developer["status"],
            rate_limit_per_minute=limit,
            scopes=scopes,
        )

    def log_usage(
        self,
        developer: DeveloperIdentity,
        endpoint: str,
        method: str,
        response_status: int,
        latency_ms: Optional[int],
        billed_units: int = 1,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        """Record a billable call. Usage logging never fails the request."""
        params: Dict[str, Any] = {
            "p_api_key_id": developer.api_key_id,
            "p_developer_id": developer.developer_id,
            "p_endpoint": endpoint,
            "p_method": method,
            "p_response_status": response_status,
            "p_latency_ms": latency_ms,
            "p_billed_units": billed_units,
            "p_ip_address": ip_address,
            "p_user_agent": user_agent,
        }
        try:
            self.supabase.rpc("log_api_usage", params).execute()
        except Exception as e:
            logger.error(f"Failed to log API usage {sanitize_for_log(params)}: {e}")


def get_gateway(supabase: Client = Depends(get_service_supabase)) -> ApiGateway:
    return ApiGateway(supabase)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def require_api_key(scope: Optional[str] = None):
    """Factory for a dependency that authenticates a developer API key"""
    def check_api_key(request: Request, gateway: ApiGateway = Depends(get_gateway)) -> DeveloperIdentity:
        api_key = extract_api_key(request.headers.get("authorization"), request.headers.get("x-api-key"))
        return gateway.validate(api_key, scope)
    return check_api_key
