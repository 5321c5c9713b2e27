from fastapi import APIRouter, Depends, HTTPException, Response
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.businesses.rules import NOT_SUSPENDED_FILTER
from app.modules.sitemap.builder import build_sitemap
from supabase import Client
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sitemap"])


@router.get("/sitemap.xml")
async def sitemap(supabase: Client = Depends(get_supabase)):
    """Public sitemap of static pages and verified, active businesses"""
    try:
        result = supabase.table("businesses")\
            .select("id, updated_at")\
            .eq("is_verified", True)\
            .or_(NOT_SUSPENDED_FILTER)\
            .order("updated_at", desc=True)\
            .execute()
    except Exception as e:
        logger.error(f"Sitemap generation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate sitemap")
    xml = build_sitemap(settings.site_url, result.data or [])
    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )
