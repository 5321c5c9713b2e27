import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.modules.auth import routes as auth_routes
from app.modules.businesses import routes as businesses_routes
from app.modules.qr_codes import routes as qr_codes_routes
from app.modules.loyalty import routes as loyalty_routes
from app.modules.commissions import routes as commissions_routes
from app.modules.subscriptions import routes as subscriptions_routes
from app.modules.sponsors import routes as sponsors_routes
from app.modules.feature_flags import routes as feature_flags_routes
from app.modules.fraud import routes as fraud_routes
from app.modules.susu import routes as susu_routes
from app.modules.accounts import routes as accounts_routes
from app.modules.developers import routes as developers_routes
from app.modules.sitemap import routes as sitemap_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(businesses_routes.router, prefix="/api/v1")
app.include_router(qr_codes_routes.router, prefix="/api/v1")
app.include_router(qr_codes_routes.business_router, prefix="/api/v1")
app.include_router(loyalty_routes.router, prefix="/api/v1")
app.include_router(commissions_routes.router, prefix="/api/v1")
app.include_router(subscriptions_routes.router, prefix="/api/v1")
app.include_router(subscriptions_routes.webhook_router, prefix="/api/v1")
app.include_router(sponsors_routes.router, prefix="/api/v1")
app.include_router(feature_flags_routes.router, prefix="/api/v1")
app.include_router(fraud_routes.router, prefix="/api/v1")
app.include_router(susu_routes.router, prefix="/api/v1")
app.include_router(accounts_routes.router, prefix="/api/v1")
app.include_router(developers_routes.router, prefix="/api/v1")
# Crawlers expect the sitemap at the site root
app.include_router(sitemap_routes.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.karma_decay_interval_seconds > 0:
        from app.modules.loyalty.decay_scheduler import karma_decay_loop
        app.state.karma_decay_task = asyncio.create_task(karma_decay_loop())
        logger.info(f"Karma decay loop started - runs every {settings.karma_decay_interval_seconds}s")


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "karma_decay_task", None)
    if task is not None:
        task.cancel()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to mansa-musa-marketplace-api", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with Supabase/Stripe checks if needed."""
    return {"status": "ready"}
