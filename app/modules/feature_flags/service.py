from supabase import Client
from app.modules.feature_flags.schemas import FeatureFlagCreate, FeatureFlagUpdate, FeatureFlagResponse
from app.modules.feature_flags.rollout import is_flag_enabled, normalize_flag_key
from app.core.timeutils import utcnow
from typing import List, Dict, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class FeatureFlagService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_flags(self) -> List[FeatureFlagResponse]:
        try:
            result = self.supabase.table("feature_flags").select("*").order("flag_key").execute()
            return [FeatureFlagResponse(**f) for f in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_flag(self, flag_data: FeatureFlagCreate) -> FeatureFlagResponse:
        try:
            key = normalize_flag_key(flag_data.flag_key)
            existing = self.supabase.table("feature_flags").select("id").eq("flag_key", key).execute()
            if existing.data:
                raise HTTPException(status_code=400, detail=f"Feature flag '{key}' already exists")
            insert_data = flag_data.model_dump()
            insert_data["flag_key"] = key
            result = self.supabase.table("feature_flags").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create feature flag")
            logger.info(f"Feature flag {key} created (enabled={flag_data.is_enabled}, rollout={flag_data.rollout_percentage})")
            return FeatureFlagResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_flag(self, flag_key: str, flag_data: FeatureFlagUpdate) -> FeatureFlagResponse:
        try:
            update_data = flag_data.model_dump(exclude_none=True)
            update_data["updated_at"] = utcnow().isoformat()
            result = self.supabase.table("feature_flags")\
                .update(update_data)\
                .eq("flag_key", flag_key)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Feature flag not found")
            logger.info(f"Feature flag {flag_key} updated: {update_data}")
            return FeatureFlagResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def evaluate_all(self, user_id: Optional[str], user_type: str) -> Dict[str, bool]:
        """Every known flag resolved for one user"""
        try:
            result = self.supabase.table("feature_flags").select("*").execute()
            return {f["flag_key"]: is_flag_enabled(f, user_id, user_type) for f in result.data or []}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
