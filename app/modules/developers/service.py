from supabase import Client
from app.modules.developers.gateway import hash_api_key
from app.modules.developers.schemas import ApiKeyCreate, ApiKeyCreated, ApiKeyResponse
from typing import List, Dict, Any
from fastapi import HTTPException
import logging
import secrets

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "mm_live_"
DISPLAY_PREFIX_LENGTH = 12
DEFAULT_RATE_LIMIT_PER_MINUTE = 60


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_urlsafe(32)


class DeveloperService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_or_create_account(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("developer_accounts")\
            .select("*")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if result and result.data:
            return result.data
        created = self.supabase.table("developer_accounts").insert({
            "user_id": user_id,
            "tier": "free",
            "status": "active",
            "rate_limit_per_minute": DEFAULT_RATE_LIMIT_PER_MINUTE,
        }).execute()
        logger.info(f"Developer account {created.data[0]['id']} opened for {user_id}")
        return created.data[0]

    def create_key(self, user_id: str, key_data: ApiKeyCreate) -> ApiKeyCreated:
        """Issue a new key. The raw key is returned once; only its hash is stored."""
        try:
            account = self.get_or_create_account(user_id)
            if account.get("status") == "suspended":
                raise HTTPException(status_code=403, detail="Developer account is suspended")
            raw_key = generate_api_key()
            result = self.supabase.table("developer_api_keys").insert({
                "developer_id": account["id"],
                "name": key_data.name,
                "key_hash": hash_api_key(raw_key),
                "key_prefix": raw_key[:DISPLAY_PREFIX_LENGTH],
                "scopes": key_data.scopes,
                "is_active": True,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create API key")
            row = {k: v for k, v in result.data[0].items() if k != "key_hash"}
            logger.info(f"API key {row['id']} issued to developer {account['id']}")
            return ApiKeyCreated(**row, api_key=raw_key)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_keys(self, user_id: str) -> List[ApiKeyResponse]:
        try:
            account = self.get_or_create_account(user_id)
            result = self.supabase.table("developer_api_keys")\
                .select("id, name, key_prefix, scopes, is_active, last_used_at, created_at")\
                .eq("developer_id", account["id"])\
                .order("created_at", desc=True)\
                .execute()
            return [ApiKeyResponse(**k) for k in result.data or []]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def revoke_key(self, user_id: str, key_id: str) -> bool:
        try:
            account = self.get_or_create_account(user_id)
            result = self.supabase.table("developer_api_keys")\
                .update({"is_active": False})\
                .eq("id", key_id)\
                .eq("developer_id", account["id"])\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="API key not found")
            logger.info(f"API key {key_id} revoked")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
