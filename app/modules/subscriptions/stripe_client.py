import logging

import stripe

from app.config import settings

logger = logging.getLogger(__name__)


def configure_stripe():
    """Point the Stripe SDK at our account; called before every Stripe API call."""
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set; Stripe calls will fail")
    stripe.api_key = settings.stripe_secret_key
    stripe.api_version = settings.stripe_api_version
    stripe.max_network_retries = 2
