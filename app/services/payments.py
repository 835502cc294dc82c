"""Stripe checkout and webhook integration.

Every call pins ``STRIPE_API_VERSION`` so payload shapes do not drift with
the account default. Stripe objects are handed to the rest of the app as
plain dicts (``to_dict()``).
"""
import logging
from typing import Any, Dict

import stripe

from app.core.config import settings
from app.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)


class StripeService:
    """Creates and retrieves subscription-mode Checkout Sessions."""

    def __init__(self, api_key: str = None):
        api_key = api_key or settings.STRIPE_SECRET_KEY
        if not api_key:
            raise UpstreamServiceError("Stripe secret key is not set in environment variables.")
        self.api_key = api_key
        self.api_version = settings.STRIPE_API_VERSION
        base = settings.API_PUBLIC_URL.rstrip("/")
        self.success_url = f"{base}/functions/v1/fulfill-stripe-subscription?session_id={{CHECKOUT_SESSION_ID}}"
        self.cancel_url = f"{base}/functions/v1/cancel-stripe-subscription"

    def create_checkout_session(self, price_id: str, user_id: str) -> Dict[str, Any]:
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                stripe_version=self.api_version,
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                metadata={"user_id": user_id, "price_id": price_id},
                success_url=self.success_url,
                cancel_url=self.cancel_url,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout error: %s", e)
            raise UpstreamServiceError(f"Stripe checkout failed: {e.user_message or str(e)}") from e
        return {"sessionId": session.id, "url": session.url}

    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        """Checkout Session with ``subscription`` expanded, as a dict."""
        try:
            session = stripe.checkout.Session.retrieve(
                session_id,
                api_key=self.api_key,
                stripe_version=self.api_version,
                expand=["subscription", "line_items.data.price.product"],
            )
        except stripe.StripeError as e:
            raise UpstreamServiceError(f"Failed to retrieve checkout session: {e}") from e
        return session.to_dict()

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook delivery and return the event as a dict.

        Raises:
            UpstreamServiceError: The webhook secret is not configured
            ValueError: The payload or its signature is invalid
        """
        secret = settings.STRIPE_WEBHOOK_SECRET
        if not secret:
            raise UpstreamServiceError("Stripe environment variables are not set.")
        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise ValueError(str(e)) from e
        return event.to_dict()


def get_stripe_service() -> StripeService:
    """FastAPI dependency; overridden in tests."""
    return StripeService()
