"""Mutual referral service.

Two people sign up together and each receives a single-use promo code for
the class coupon. The flow is a fixed sequence of external calls:

1. Create a Stripe customer for each participant
2. Create one promotion code per participant against the referral coupon
3. Email both codes in a single Resend batch

Nothing is rolled back if a later step fails. Customers and codes created
before the failure stay in Stripe and are only reported in the logs.
"""

import uuid
from typing import Any

from lessons.email.service import EmailError, EmailMessage, EmailService
from lessons.email.templates import MUTUAL_REFERRER_SUBJECT, render_mutual_referrer_email
from lessons.logging_config import get_logger
from lessons.payments.stripe_service import ProcessorError, StripeService
from lessons.referral.models import Participant, PromotionCode, ReferralRequest

logger = get_logger(__name__)

CODE_SUFFIX_LENGTH = 8
MAX_REDEMPTIONS = 1

STEP_CREATE_CUSTOMERS = "create_customers"
STEP_CREATE_PROMOTION_CODES = "create_promotion_codes"
STEP_SEND_EMAILS = "send_emails"


class ReferralError(Exception):
    """Base error for the mutual referral flow.

    ``step`` names where the sequence stopped.
    """

    def __init__(self, message: str, step: str):
        self.message = message
        self.step = step
        super().__init__(message)


class ReferralStepFailed(ReferralError):
    """A Stripe call failed; the flow stopped before any email was sent."""

    def __init__(self, step: str, cause: ProcessorError):
        self.cause = cause
        super().__init__(f"Referral failed at {step}: {cause.message}", step)


class EmailDeliveryFailed(ReferralError):
    """The batch send was rejected. ``payload`` is Resend's error body."""

    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__("Referral emails could not be sent", STEP_SEND_EMAILS)


def generate_promo_codes(first_name1: str, first_name2: str) -> tuple[str, str]:
    """Derive both promo codes from one random identifier.

    Participant 1 gets the first 8 hex characters, participant 2 the last 8.
    """
    token = uuid.uuid4().hex.upper()
    code1 = f"{first_name1.upper()}{token[:CODE_SUFFIX_LENGTH]}"
    code2 = f"{first_name2.upper()}{token[-CODE_SUFFIX_LENGTH:]}"
    return code1, code2


class MutualReferralService:
    """Service issuing paired referral promo codes."""

    def __init__(
        self,
        stripe_service: StripeService,
        email_service: EmailService,
        coupon_id: str | None,
        email_from: str,
        signup_url: str,
    ):
        self.stripe = stripe_service
        self.email = email_service
        self.coupon_id = coupon_id
        self.email_from = email_from
        self.signup_url = signup_url
        self.logger = get_logger(__name__)

    async def execute(self, request: ReferralRequest) -> list[PromotionCode]:
        """Run the referral flow for two participants.

        Args:
            request: Validated participants

        Returns:
            The two promotion codes, participant 1 first

        Raises:
            ReferralStepFailed: A customer or promotion code could not be created
            EmailDeliveryFailed: Stripe resources exist but the emails were rejected
        """
        if not self.coupon_id:
            raise ReferralStepFailed(
                STEP_CREATE_PROMOTION_CODES,
                ProcessorError("Referral coupon is not configured", code="not_configured"),
            )

        first, second = request.participants

        customer_ids = []
        try:
            for participant in (first, second):
                customer_ids.append(
                    await self.stripe.create_customer(participant.full_name, participant.email)
                )
        except ProcessorError as e:
            self._log_orphans(STEP_CREATE_CUSTOMERS, customer_ids, [])
            raise ReferralStepFailed(STEP_CREATE_CUSTOMERS, e) from e

        self.logger.info("referral_customers_created", customer_ids=customer_ids)

        code1, code2 = generate_promo_codes(first.first_name, second.first_name)

        promo_codes: list[PromotionCode] = []
        try:
            for owner_index, code in ((1, code1), (2, code2)):
                promotion_code_id = await self.stripe.create_promotion_code(
                    self.coupon_id, code, max_redemptions=MAX_REDEMPTIONS
                )
                promo_codes.append(
                    PromotionCode(
                        owner_index=owner_index,
                        code=code,
                        promotion_code_id=promotion_code_id,
                        max_redemptions=MAX_REDEMPTIONS,
                    )
                )
        except ProcessorError as e:
            self._log_orphans(STEP_CREATE_PROMOTION_CODES, customer_ids, promo_codes)
            raise ReferralStepFailed(STEP_CREATE_PROMOTION_CODES, e) from e

        messages = [
            self._build_message(participant, promo.code)
            for participant, promo in zip((first, second), promo_codes)
        ]

        try:
            await self.email.send_batch(messages)
        except EmailError as e:
            self._log_orphans(STEP_SEND_EMAILS, customer_ids, promo_codes)
            raise EmailDeliveryFailed(e.payload) from e

        self.logger.info(
            "mutual_referral_completed",
            codes=[p.code for p in promo_codes],
        )
        return promo_codes

    def _build_message(self, participant: Participant, promo_code: str) -> EmailMessage:
        return EmailMessage(
            sender=self.email_from,
            to=[participant.email],
            subject=MUTUAL_REFERRER_SUBJECT,
            html=render_mutual_referrer_email(
                participant.first_name, promo_code, self.signup_url
            ),
        )

    def _log_orphans(
        self,
        step: str,
        customer_ids: list[str],
        promo_codes: list[PromotionCode],
    ) -> None:
        # Resources created before a failure are left in Stripe
        self.logger.warning(
            "mutual_referral_failed",
            step=step,
            orphaned_customer_ids=customer_ids,
            orphaned_promotion_code_ids=[p.promotion_code_id for p in promo_codes],
        )
