from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Dict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations and webhooks (bypasses RLS)

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_corporate_webhook_secret: Optional[str] = None
    stripe_api_version: str = "2023-10-16"
    stripe_price_ids: str = ""  # "pro=price_123,enterprise=price_456,gold=price_789"

    # Apple App Store Server Notifications
    apple_bundle_id: Optional[str] = None
    apple_environment: str = "Production"  # Production | Sandbox

    # Public site used for QR deep links and sitemap
    site_url: str = "https://mansamusamarketplace.com"

    # Loyalty / fraud tuning
    qr_scan_cooldown_hours: int = 24
    karma_decay_interval_seconds: int = 0  # 0 disables the background decay loop
    fraud_max_travel_kmh: float = 900.0
    fraud_max_scans_per_hour: int = 10

    # App
    app_name: str = "mansa-musa-marketplace-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_price_ids(self) -> Dict[str, str]:
        pairs = {}
        for item in self.stripe_price_ids.split(","):
            if "=" not in item:
                continue
            tier, price_id = item.split("=", 1)
            if tier.strip() and price_id.strip():
                pairs[tier.strip().lower()] = price_id.strip()
        return pairs

    def get_price_id(self, tier: str) -> Optional[str]:
        return self.get_price_ids().get(tier.lower())

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
