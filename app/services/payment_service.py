import razorpay
from typing import Dict, Any, Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


class PaymentService:
    """Hosted subscription checkout and webhook verification on Razorpay."""

    def __init__(self):
        self.razorpay_client = razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )

    def create_subscription_checkout(self, plan_id: str, notes: Optional[Dict[str, Any]] = None,
                                     customer_email: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a Razorpay subscription on ``plan_id``.

        Each plan covers one commitment period, so a single billing cycle is requested.
        Returns the hosted payment page in ``url`` (Razorpay's ``short_url``).
        """
        try:
            data = {
                "plan_id": plan_id,
                "total_count": 1,
                "quantity": 1,
                "customer_notify": 1,
                "notes": notes or {},
            }
            if customer_email:
                data["notify_info"] = {"notify_email": customer_email}

            subscription = self.razorpay_client.subscription.create(data=data)
            logger.info(f"Razorpay subscription created: {subscription.get('id')}")

            return {
                "success": True,
                "subscription_id": subscription.get("id"),
                "url": subscription.get("short_url"),
                "message": "Checkout created successfully",
            }

        except Exception as e:
            logger.error(f"Error creating Razorpay subscription: {e}")
            return {
                "success": False,
                "error": str(e),
                "message": "Failed to create checkout",
            }

    def verify_webhook(self, payload: str, signature: Optional[str]) -> Dict[str, Any]:
        """Check the ``X-Razorpay-Signature`` header against the raw request body."""
        if not settings.RAZORPAY_WEBHOOK_SECRET:
            return {"success": False, "error": "Webhook secret not configured", "message": "Webhook verification failed"}
        if not signature:
            return {"success": False, "error": "Missing signature", "message": "Webhook verification failed"}

        try:
            self.razorpay_client.utility.verify_webhook_signature(
                payload, signature, settings.RAZORPAY_WEBHOOK_SECRET
            )
            return {"success": True, "message": "Webhook verified successfully"}
        except razorpay.errors.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            return {
                "success": False,
                "error": "Invalid signature",
                "message": "Webhook verification failed",
            }


# Global payment service instance
payment_service = PaymentService()
