"""FastAPI dependencies.

Services are built once in ``create_app`` and kept on ``app.state``; routes
receive them through these providers so tests can override them.
"""

from fastapi import Request

from lessons.email.service import EmailService
from lessons.payments.stripe_service import StripeService
from lessons.referral.service import MutualReferralService
from lessons.settings import Settings
from lessons.storage.db import Database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stripe_service(request: Request) -> StripeService:
    return request.app.state.stripe_service


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_referral_service(request: Request) -> MutualReferralService:
    return request.app.state.referral_service


def get_database(request: Request) -> Database:
    return request.app.state.database
