"""Payments module: Stripe checkout sessions, customers and promotion codes."""

from lessons.payments.stripe_service import (
    CheckoutSession,
    ProcessorError,
    SessionStatus,
    StripeService,
)

__all__ = ["CheckoutSession", "ProcessorError", "SessionStatus", "StripeService"]
