"""
Pytest configuration and shared fixtures.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from lessons.api.main import create_app
from lessons.email.service import BatchReceipt, EmailService
from lessons.payments.stripe_service import StripeService
from lessons.referral.models import Participant, ReferralRequest
from lessons.settings import Settings
from lessons.storage.db import Database


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file"""
    return Settings(
        _env_file=None,
        env="test",
        base_url="https://lightninglessons.com",
        class_signup_url="https://lightninglessons.com/signup",
        price_id="price_123",
        coupon_id="coupon_referral",
        email_from="Lightning Lessons <hello@lightninglessons.com>",
        resend_audience_id=None,
    )


@pytest.fixture
def stripe_service():
    """Stripe adapter with every async method mocked"""
    service = MagicMock(spec=StripeService)
    service.create_customer.side_effect = ["cus_1", "cus_2"]
    service.create_promotion_code.side_effect = ["promo_1", "promo_2"]
    return service


@pytest.fixture
def email_service():
    """Email adapter with every async method mocked"""
    service = MagicMock(spec=EmailService)
    service.send_batch.return_value = BatchReceipt(ids=["msg_1", "msg_2"])
    return service


@pytest.fixture
def database():
    return MagicMock(spec=Database)


@pytest.fixture
def referral_request():
    """Ana and Bo signing up together"""
    return ReferralRequest(
        first=Participant(first_name="Ana", last_name="Silva", email="ana@x.com"),
        second=Participant(first_name="Bo", last_name="Lind", email="bo@y.com"),
    )


@pytest.fixture
def referral_form():
    return {
        "firstName1": "Ana",
        "lastName1": "Silva",
        "email1": "ana@x.com",
        "firstName2": "Bo",
        "lastName2": "Lind",
        "email2": "bo@y.com",
    }


@pytest.fixture
def app(test_settings, stripe_service, email_service, database):
    return create_app(
        test_settings,
        stripe_service=stripe_service,
        email_service=email_service,
        database=database,
    )


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
