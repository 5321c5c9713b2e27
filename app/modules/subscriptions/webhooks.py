"""
Inbound subscription lifecycle webhooks.

Stripe events are verified with the SDK before anything is written. Apple App Store
Server Notifications v2 arrive as a JWS; only the payload segments are decoded here,
certificate chain verification is left to the App Store tooling in front of us.
"""
from supabase import Client
from app.config import settings
from app.modules.subscriptions import rules
from app.modules.sponsors.service import SponsorService
from app.core.timeutils import utcnow
from typing import Any, Callable, Dict, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import base64
import json
import logging
import stripe

logger = logging.getLogger(__name__)


def _epoch_to_iso(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


class StripeWebhookHandler:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.sponsors = SponsorService(supabase)
        self.handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "checkout.session.completed": self._checkout_completed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
            "payment_intent.succeeded": self._payment_succeeded,
            "payment_intent.payment_failed": self._payment_failed,
            "account.updated": self._account_updated,
            "charge.refunded": self._charge_refunded,
        }

    def construct_event(self, payload: bytes, signature: Optional[str], secret: Optional[str]):
        if not secret:
            raise HTTPException(status_code=400, detail="Webhook secret not configured")
        if not signature:
            raise HTTPException(status_code=400, detail="Missing Stripe signature")
        try:
            return stripe.Webhook.construct_event(payload, signature, secret)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            raise HTTPException(status_code=400, detail="Invalid signature")

    def handle(self, payload: bytes, signature: Optional[str], corporate: bool = False) -> Dict[str, bool]:
        secret = settings.stripe_corporate_webhook_secret if corporate else settings.stripe_webhook_secret
        self.construct_event(payload, signature, secret)
        # Handlers work on plain dicts; the SDK Event object is not one
        event = json.loads(payload)
        event_type = event["type"]
        obj = event["data"]["object"]
        logger.info(f"Processing webhook event: {event_type} ({event.get('id')})")

        if corporate and event_type == "checkout.session.completed":
            self.sponsors.handle_corporate_checkout(obj)
            return {"received": True}

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled event type: {event_type}")
            return {"received": True}
        try:
            handler(obj)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Webhook error on {event_type}: {e}")
            raise HTTPException(status_code=400, detail=str(e))
        return {"received": True}

    def _checkout_completed(self, session: Dict[str, Any]):
        metadata = session.get("metadata") or {}
        if metadata.get("user_type") == "corporate" or metadata.get("userType") == "corporate":
            self.sponsors.handle_corporate_checkout(session)
            return
        user_id = metadata.get("user_id") or session.get("client_reference_id")
        if not user_id:
            logger.warning(f"Checkout {session.get('id')} has no user_id; nothing to record")
            return
        self.supabase.table("subscriptions").upsert({
            "user_id": user_id,
            "user_type": metadata.get("user_type") or "customer",
            "tier": metadata.get("tier") or None,
            "source": "stripe",
            "stripe_customer_id": session.get("customer"),
            "stripe_subscription_id": session.get("subscription"),
            "status": "active",
            "cancel_at_period_end": False,
            "updated_at": utcnow().isoformat(),
        }, on_conflict="user_id").execute()
        logger.info(f"Subscription recorded for user {user_id} from checkout {session.get('id')}")

    def _subscription_updated(self, subscription: Dict[str, Any]):
        update_data = {
            "status": subscription.get("status"),
            "current_period_start": _epoch_to_iso(subscription.get("current_period_start")),
            "current_period_end": _epoch_to_iso(subscription.get("current_period_end")),
            "cancel_at_period_end": bool(subscription.get("cancel_at_period_end")),
        }
        for table in ("subscriptions", "corporate_subscriptions"):
            self.supabase.table(table).update(update_data).eq("stripe_subscription_id", subscription["id"]).execute()
        logger.info(f"Subscription updated: {subscription['id']} -> {update_data['status']}")

    def _subscription_deleted(self, subscription: Dict[str, Any]):
        for table in ("subscriptions", "corporate_subscriptions"):
            self.supabase.table(table)\
                .update({"status": "cancelled"})\
                .eq("stripe_subscription_id", subscription["id"])\
                .execute()
        logger.info(f"Subscription cancelled: {subscription['id']}")

    def _payment_succeeded(self, payment_intent: Dict[str, Any]):
        self.supabase.table("platform_transactions")\
            .update({"status": "succeeded", "stripe_charge_id": payment_intent.get("latest_charge")})\
            .eq("stripe_payment_intent_id", payment_intent["id"])\
            .execute()
        logger.info(f"Payment succeeded: {payment_intent['id']}")

    def _payment_failed(self, payment_intent: Dict[str, Any]):
        self.supabase.table("platform_transactions")\
            .update({"status": "failed"})\
            .eq("stripe_payment_intent_id", payment_intent["id"])\
            .execute()
        logger.info(f"Payment failed: {payment_intent['id']}")

    def _account_updated(self, account: Dict[str, Any]):
        charges = bool(account.get("charges_enabled"))
        payouts = bool(account.get("payouts_enabled"))
        requirements = account.get("requirements") or {}
        self.supabase.table("business_payment_accounts")\
            .update({
                "account_status": "active" if charges and payouts else "restricted",
                "charges_enabled": charges,
                "payouts_enabled": payouts,
                "requirements_due": list(requirements.get("currently_due") or []),
            })\
            .eq("stripe_account_id", account["id"])\
            .execute()
        logger.info(f"Account updated: {account['id']}")

    def _charge_refunded(self, charge: Dict[str, Any]):
        self.supabase.table("platform_transactions")\
            .update({"status": "refunded"})\
            .eq("stripe_charge_id", charge["id"])\
            .execute()
        logger.info(f"Charge refunded: {charge['id']}")


def decode_jws_payload(token: str) -> Dict[str, Any]:
    """Decode the payload segment of a compact JWS without verifying it."""
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3:
        raise ValueError("Malformed JWS")
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    return json.loads(base64.urlsafe_b64decode(segment.encode("ascii")))


class AppleNotificationHandler:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def handle(self, body: Dict[str, Any]) -> Dict[str, bool]:
        signed_payload = body.get("signedPayload") if isinstance(body, dict) else None
        if not signed_payload:
            raise HTTPException(status_code=400, detail="Missing signedPayload")
        try:
            notification = decode_jws_payload(signed_payload)
            if not isinstance(notification, dict):
                raise ValueError("Notification payload is not an object")
            data = notification.get("data") or {}
            if not isinstance(data, dict):
                raise ValueError("Notification data is not an object")
            transaction = decode_jws_payload(data["signedTransactionInfo"]) if data.get("signedTransactionInfo") else {}
            if not isinstance(transaction, dict):
                raise ValueError("Transaction payload is not an object")
            expires_ms = int(transaction["expiresDate"]) if transaction.get("expiresDate") else None
        except (ValueError, TypeError, KeyError, UnicodeDecodeError) as e:
            logger.error(f"Malformed Apple notification: {e}")
            raise HTTPException(status_code=400, detail="Malformed notification payload")

        notification_type = notification.get("notificationType")
        subtype = notification.get("subtype")
        bundle_id = data.get("bundleId") or transaction.get("bundleId")
        if settings.apple_bundle_id and bundle_id != settings.apple_bundle_id:
            logger.warning(f"Apple notification for unexpected bundle {bundle_id}")
            raise HTTPException(status_code=400, detail="Bundle ID mismatch")
        logger.info(f"Processing Apple notification: {notification_type}/{subtype}")

        original_transaction_id = transaction.get("originalTransactionId")
        if not original_transaction_id:
            logger.info(f"Apple notification {notification_type} carries no transaction; acknowledged")
            return {"received": True}

        row: Dict[str, Any] = {
            "apple_original_transaction_id": original_transaction_id,
            "apple_product_id": transaction.get("productId"),
            "apple_environment": data.get("environment") or settings.apple_environment,
            "source": "apple",
            "updated_at": utcnow().isoformat(),
        }
        if expires_ms is not None:
            row["current_period_end"] = _epoch_to_iso(expires_ms // 1000)
        if transaction.get("appAccountToken"):
            row["user_id"] = transaction["appAccountToken"]
        tier = rules.tier_from_product_id(transaction.get("productId"))
        if tier:
            row["tier"] = tier

        status = rules.apple_status(notification_type)
        if status:
            row["status"] = status
            if status == "active":
                row["cancel_at_period_end"] = False
        elif notification_type == "DID_CHANGE_RENEWAL_STATUS":
            row["cancel_at_period_end"] = subtype == "AUTO_RENEW_DISABLED"
        else:
            logger.info(f"Unhandled Apple notification type: {notification_type}")
            return {"received": True}

        self.supabase.table("subscriptions")\
            .upsert(row, on_conflict="apple_original_transaction_id")\
            .execute()
        logger.info(f"Apple subscription {original_transaction_id} updated ({notification_type})")
        return {"received": True}
