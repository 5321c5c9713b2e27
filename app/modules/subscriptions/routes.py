from fastapi import APIRouter, Depends, HTTPException, Request
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.subscriptions import rules
from app.modules.subscriptions.schemas import (
    CheckoutRequest, CheckoutResponse, PortalRequest, PortalResponse, SubscriptionTier, WebhookAck
)
from app.modules.subscriptions.service import SubscriptionService
from app.modules.subscriptions.webhooks import StripeWebhookHandler, AppleNotificationHandler
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def get_subscription_service(supabase: Client = Depends(get_supabase)) -> SubscriptionService:
    return SubscriptionService(supabase)


def get_stripe_handler(supabase: Client = Depends(get_service_supabase)) -> StripeWebhookHandler:
    return StripeWebhookHandler(supabase)


def get_apple_handler(supabase: Client = Depends(get_service_supabase)) -> AppleNotificationHandler:
    return AppleNotificationHandler(supabase)


@router.get("/tiers", response_model=List[SubscriptionTier])
async def list_tiers():
    return [
        SubscriptionTier(id=tier_id, name=name, price=price, features=features)
        for tier_id, name, price, features in rules.SUBSCRIPTION_TIERS
    ]


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    request: CheckoutRequest,
    user_data: Dict = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.create_checkout(request, user_data)


@router.post("/portal", response_model=PortalResponse)
async def create_portal(
    request: PortalRequest,
    user_data: Dict = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.create_portal(user_data["id"], request.return_url)


@webhook_router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    handler: StripeWebhookHandler = Depends(get_stripe_handler)
):
    payload = await request.body()
    return handler.handle(payload, request.headers.get("stripe-signature"))


@webhook_router.post("/stripe/corporate", response_model=WebhookAck)
async def stripe_corporate_webhook(
    request: Request,
    handler: StripeWebhookHandler = Depends(get_stripe_handler)
):
    """Corporate sponsorship checkouts, signed with their own endpoint secret"""
    payload = await request.body()
    return handler.handle(payload, request.headers.get("stripe-signature"), corporate=True)


@webhook_router.post("/apple", response_model=WebhookAck)
async def apple_webhook(
    request: Request,
    handler: AppleNotificationHandler = Depends(get_apple_handler)
):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    return handler.handle(body)
