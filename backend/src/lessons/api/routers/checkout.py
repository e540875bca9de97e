"""Checkout endpoints: product display, embedded checkout and session status."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from lessons.api.deps import get_settings, get_stripe_service
from lessons.logging_config import get_logger
from lessons.payments.stripe_service import StripeService
from lessons.settings import Settings

logger = get_logger(__name__)

router = APIRouter(tags=["checkout"])

NO_ZOOM_LINK = "no zoom link found"


# ==================== MODELS ====================


class CheckoutSessionResponse(BaseModel):
    """Client secret for the embedded checkout form."""
    clientSecret: str | None


class SessionStatusResponse(BaseModel):
    """Checkout session status for the return page."""
    status: str | None
    payment_status: str | None
    customer_email: str | None = None
    customer_name: str | None = None


# ==================== HELPERS ====================


def _require_price_id(settings: Settings) -> str:
    if not settings.price_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="PRICE_ID environment variable is required",
        )
    return settings.price_id


def _zoom_link(product: Any) -> str:
    # product may be an unexpanded id or a deleted product
    if not isinstance(product, dict):
        return NO_ZOOM_LINK
    metadata = product.get("metadata") or {}
    return metadata.get("zoom_link") or NO_ZOOM_LINK


# ==================== ENDPOINTS ====================


@router.get("/get_products")
async def get_products(
    settings: Settings = Depends(get_settings),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Product details and price for the frontend."""
    price = await stripe_service.retrieve_price(_require_price_id(settings))
    return {"product": price.get("product")}


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    settings: Settings = Depends(get_settings),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Create an embedded checkout session for the class.

    The payment receipt carries the class zoom link from the product metadata.
    """
    price_id = _require_price_id(settings)
    price = await stripe_service.retrieve_price(price_id)
    zoom_link = _zoom_link(price.get("product"))

    session = await stripe_service.create_checkout_session(
        line_items=[{"price": price_id, "quantity": 1}],
        mode="payment",
        return_url=settings.redirect_url("checkout/return") + "?session_id={CHECKOUT_SESSION_ID}",
        description=f"Thanks for joining the class. Here is the zoom link: {zoom_link}",
    )

    return CheckoutSessionResponse(clientSecret=session.client_secret)


@router.get("/session_status", response_model=SessionStatusResponse)
async def session_status(
    session_id: str = "",
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Get the status of a checkout session."""
    result = await stripe_service.retrieve_checkout_session(session_id)

    return SessionStatusResponse(
        status=result.status,
        payment_status=result.payment_status,
        customer_email=result.customer_email,
        customer_name=result.customer_name,
    )
