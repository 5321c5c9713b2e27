import asyncio
import logging
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.loyalty.service import LoyaltyService

logger = logging.getLogger(__name__)


async def run_decay_pass():
    """Decay karma for every profile that has gone quiet for a month."""
    try:
        service = LoyaltyService(get_service_supabase())
        result = service.run_karma_decay()
        if result.profiles_decayed:
            logger.info(f"Decayed karma for {result.profiles_decayed} profile(s)")
        else:
            logger.debug("No karma decay due")
    except Exception as e:
        logger.error(f"Error in karma decay pass: {str(e)}")


async def karma_decay_loop():
    """Background task that periodically applies monthly karma decay"""
    interval = settings.karma_decay_interval_seconds
    while True:
        try:
            await run_decay_pass()
        except Exception as e:
            logger.error(f"Error in karma decay loop: {str(e)}")

        await asyncio.sleep(interval)
