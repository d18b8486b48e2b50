"""Thin wrapper over the Stripe SDK.

One ``StripeGateway`` is created in the application lifespan and handed to
routes through ``get_payment_gateway`` so tests can swap in a fake. Methods
return plain dicts; Stripe failures surface as ``UpstreamError``.
"""
import logging
from typing import Any, Dict, List, Optional

import stripe
from fastapi import Request

from app.errors import UpstreamError

logger = logging.getLogger(__name__)


def _plain(obj: Any) -> Dict[str, Any]:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """Checkout sessions, subscriptions and webhook verification."""

    def __init__(self, secret_key: str, webhook_secret: str):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def _call(self, action: str, method, *args, **kwargs) -> Dict[str, Any]:
        try:
            return _plain(method(*args, api_key=self.secret_key, **kwargs))
        except stripe.StripeError as e:
            logger.error(f"Stripe request failed ({action}): {e}")
            raise UpstreamError(f"Failed to {action}: {e.user_message or str(e)}")

    def create_checkout_session(self, **params) -> Dict[str, Any]:
        return self._call("create checkout session", stripe.checkout.Session.create, **params)

    def retrieve_checkout_session(self, session_id: str, expand: Optional[List[str]] = None) -> Dict[str, Any]:
        kwargs = {"expand": expand} if expand else {}
        return self._call("retrieve checkout session", stripe.checkout.Session.retrieve, session_id, **kwargs)

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return self._call("retrieve subscription", stripe.Subscription.retrieve, subscription_id)

    def create_customer(self, email: str, name: str) -> Dict[str, Any]:
        return self._call("create customer", stripe.Customer.create, email=email, name=name)

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify and parse a webhook payload.

        Raises ``ValueError`` for malformed payloads and
        ``stripe.SignatureVerificationError`` for bad signatures.
        """
        event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        return _plain(event)


def get_payment_gateway(request: Request) -> StripeGateway:
    """Dependency returning the gateway created at startup."""
    return request.app.state.payment_gateway
