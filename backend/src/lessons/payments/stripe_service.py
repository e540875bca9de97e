"""Stripe payment integration for Lightning Lessons.

Thin async wrapper around ``stripe.StripeClient``. The client is built once at
startup with the retry count, timeout and API version applied at the
transport level, so individual calls never configure those themselves.
"""

from dataclasses import dataclass
from typing import Any

import stripe

from lessons.logging_config import get_logger

logger = get_logger(__name__)


class ProcessorError(Exception):
    """Error from the Stripe API (network, validation, duplicate code...)."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


@dataclass(frozen=True)
class CheckoutSession:
    """Newly created embedded checkout session."""

    session_id: str
    client_secret: str | None


@dataclass(frozen=True)
class SessionStatus:
    """Status snapshot of a checkout session."""

    status: str | None
    payment_status: str | None
    customer_email: str | None = None
    customer_name: str | None = None


class StripeService:
    """Service for interacting with the Stripe API."""

    def __init__(
        self,
        api_key: str | None,
        api_version: str | None = None,
        max_network_retries: int = 3,
        timeout: float = 30.0,
        client: stripe.StripeClient | None = None,
    ):
        """Initialize Stripe service.

        Args:
            api_key: Stripe secret key. Service is disabled without it.
            api_version: Pinned Stripe API version
            max_network_retries: Retries performed by the SDK transport
            timeout: Transport timeout in seconds
            client: Pre-built client (tests)
        """
        self.enabled = bool(api_key) or client is not None
        self._client = client

        if self._client is None and api_key:
            self._client = stripe.StripeClient(
                api_key,
                stripe_version=api_version,
                max_network_retries=max_network_retries,
                http_client=stripe.HTTPXClient(timeout=timeout),
            )

        if not self.enabled:
            logger.warning("stripe_service_disabled", reason="STRIPE_SECRET_KEY not set")

    def _require_client(self) -> stripe.StripeClient:
        if self._client is None:
            raise ProcessorError("Stripe is not configured", code="not_configured")
        return self._client

    @staticmethod
    def _wrap(operation: str, exc: stripe.StripeError) -> ProcessorError:
        logger.error(
            "stripe_request_failed",
            operation=operation,
            status=exc.http_status,
            code=exc.code,
            error=exc.user_message or str(exc),
        )
        return ProcessorError(
            exc.user_message or str(exc),
            status_code=exc.http_status,
            code=exc.code,
        )

    async def create_customer(self, name: str, email: str) -> str:
        """Create a Stripe customer.

        Returns:
            Customer ID
        """
        client = self._require_client()
        try:
            customer = await client.v1.customers.create_async(
                params={"name": name, "email": email}
            )
        except stripe.StripeError as e:
            raise self._wrap("create_customer", e) from e

        logger.info("stripe_customer_created", customer_id=customer.id)
        return customer.id

    async def create_promotion_code(
        self,
        coupon_id: str,
        code: str,
        max_redemptions: int = 1,
    ) -> str:
        """Create a customer-facing promotion code for a coupon.

        Raises:
            ProcessorError: If the code already exists or the coupon is invalid

        Returns:
            Promotion code ID
        """
        client = self._require_client()
        try:
            promotion_code = await client.v1.promotion_codes.create_async(
                params={
                    "coupon": coupon_id,
                    "code": code,
                    "max_redemptions": max_redemptions,
                }
            )
        except stripe.StripeError as e:
            raise self._wrap("create_promotion_code", e) from e

        logger.info(
            "stripe_promotion_code_created",
            promotion_code_id=promotion_code.id,
            code=code,
        )
        return promotion_code.id

    async def create_checkout_session(
        self,
        line_items: list[dict[str, Any]],
        mode: str,
        return_url: str,
        description: str | None = None,
        allow_promotion_codes: bool = True,
    ) -> CheckoutSession:
        """Create an embedded Checkout session.

        Args:
            line_items: Stripe line items (``{"price": ..., "quantity": ...}``)
            mode: Checkout mode, e.g. ``"payment"``
            return_url: Where Stripe sends the customer afterwards. May contain
                the ``{CHECKOUT_SESSION_ID}`` template variable.
            description: Payment intent description shown on the receipt
            allow_promotion_codes: Let customers enter promotion codes

        Returns:
            Session ID and client secret for the embedded form
        """
        client = self._require_client()

        params: dict[str, Any] = {
            "line_items": line_items,
            "mode": mode,
            "ui_mode": "embedded",
            "return_url": return_url,
            "allow_promotion_codes": allow_promotion_codes,
        }
        if description:
            params["payment_intent_data"] = {"description": description}

        try:
            session = await client.v1.checkout.sessions.create_async(params=params)
        except stripe.StripeError as e:
            raise self._wrap("create_checkout_session", e) from e

        logger.info("checkout_session_created", session_id=session.id)
        return CheckoutSession(session_id=session.id, client_secret=session.client_secret)

    async def retrieve_checkout_session(self, session_id: str) -> SessionStatus:
        """Get the status of a Checkout session.

        An empty ``session_id`` is sent as-is; Stripe's own invalid-id error
        is what the caller sees.
        """
        client = self._require_client()
        try:
            session = await client.v1.checkout.sessions.retrieve_async(session_id)
        except stripe.StripeError as e:
            raise self._wrap("retrieve_checkout_session", e) from e

        details = session.customer_details
        return SessionStatus(
            status=session.status,
            payment_status=session.payment_status,
            customer_email=details.email if details else None,
            customer_name=details.name if details else None,
        )

    async def retrieve_price(self, price_id: str) -> dict[str, Any]:
        """Get a price with its product expanded.

        Returns:
            Price as a plain dict; ``price["product"]`` is the product dict
        """
        client = self._require_client()
        try:
            price = await client.v1.prices.retrieve_async(
                price_id, params={"expand": ["product"]}
            )
        except stripe.StripeError as e:
            raise self._wrap("retrieve_price", e) from e

        return price.to_dict()
