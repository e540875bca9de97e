"""Mutual referral module for Lightning Lessons.

Two people sign up together:
- Both get a Stripe customer
- Each gets a single-use promo code for the referral coupon
- Both codes go out in one email batch
"""

from lessons.referral.models import Participant, PromotionCode, ReferralRequest
from lessons.referral.service import (
    EmailDeliveryFailed,
    MutualReferralService,
    ReferralError,
    ReferralStepFailed,
    generate_promo_codes,
)

__all__ = [
    "EmailDeliveryFailed",
    "MutualReferralService",
    "Participant",
    "PromotionCode",
    "ReferralError",
    "ReferralRequest",
    "ReferralStepFailed",
    "generate_promo_codes",
]
