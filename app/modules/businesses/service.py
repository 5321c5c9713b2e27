from supabase import Client
from app.modules.businesses.rules import NOT_SUSPENDED_FILTER
from app.modules.businesses.schemas import BusinessCreate, BusinessUpdate, BusinessResponse
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class BusinessService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_business(self, business_data: BusinessCreate, owner_id: str) -> BusinessResponse:
        """Create a business profile owned by the caller. New businesses start unverified."""
        try:
            insert_data = business_data.model_dump(exclude_none=True)
            insert_data.update({
                "owner_id": owner_id,
                "is_verified": False,
                "is_suspended": False,
            })
            result = self.supabase.table("businesses").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create business")
            logger.info(f"Business {result.data[0]['id']} created by {owner_id}")
            return BusinessResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_business_row(self, business_id: str) -> dict:
        result = self.supabase.table("businesses")\
            .select("*")\
            .eq("id", business_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Business not found")
        return result.data

    def get_business_by_id(self, business_id: str) -> BusinessResponse:
        try:
            return BusinessResponse(**self.get_business_row(business_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_businesses(
        self,
        category: Optional[str] = None,
        city: Optional[str] = None,
        verified_only: bool = False,
        owner_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[BusinessResponse]:
        """Directory listing. Suspended businesses are hidden unless listing by owner."""
        try:
            query = self.supabase.table("businesses").select("*")
            if owner_id:
                query = query.eq("owner_id", owner_id)
            else:
                query = query.or_(NOT_SUSPENDED_FILTER)
            if category:
                query = query.eq("category", category)
            if city:
                query = query.eq("city", city)
            if verified_only:
                query = query.eq("is_verified", True)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [BusinessResponse(**b) for b in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_business(self, business_id: str, business_data: BusinessUpdate) -> BusinessResponse:
        try:
            update_data = business_data.model_dump(exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("businesses")\
                .update(update_data)\
                .eq("id", business_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Business not found")
            return BusinessResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_verified(self, business_id: str, verified: bool = True) -> BusinessResponse:
        return self._set_flags(business_id, {"is_verified": verified})

    def set_suspended(self, business_id: str, suspended: bool, reason: Optional[str] = None) -> BusinessResponse:
        logger.info(f"Business {business_id} suspended={suspended} reason={reason!r}")
        return self._set_flags(business_id, {
            "is_suspended": suspended,
            "suspension_reason": reason if suspended else None,
        })

    def _set_flags(self, business_id: str, flags: dict) -> BusinessResponse:
        try:
            flags["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("businesses")\
                .update(flags)\
                .eq("id", business_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Business not found")
            return BusinessResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_business(self, business_id: str) -> bool:
        try:
            result = self.supabase.table("businesses")\
                .delete()\
                .eq("id", business_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
