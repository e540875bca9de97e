"""Signup endpoints: newsletter and mutual referral forms."""

from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import EmailStr

from lessons.api.deps import get_email_service, get_referral_service, get_settings
from lessons.api.rate_limit import limiter
from lessons.email.service import EmailError, EmailService
from lessons.logging_config import get_logger
from lessons.referral.models import Participant, ReferralRequest
from lessons.referral.service import EmailDeliveryFailed, MutualReferralService
from lessons.settings import Settings

logger = get_logger(__name__)

router = APIRouter(tags=["signup"])


def _name_form(alias: str):
    # At least one non-whitespace character
    return Form(alias=alias, pattern=r"\S")


@router.post("/subscribe")
@limiter.limit("10/minute")
async def subscribe(
    request: Request,
    email: Annotated[EmailStr, Form()],
    settings: Settings = Depends(get_settings),
    email_service: EmailService = Depends(get_email_service),
):
    """Newsletter signup.

    The subscriber is added to the Resend audience when one is configured.
    A failure there is logged and does not block the redirect.
    """
    logger.info("newsletter_signup_received", email=email)

    if settings.resend_audience_id:
        try:
            await email_service.add_contact(settings.resend_audience_id, email)
        except EmailError as e:
            logger.warning("newsletter_contact_not_added", email=email, error=e.payload)

    return RedirectResponse(
        settings.redirect_url("email-signup/return"),
        status_code=status.HTTP_302_FOUND,
    )


@router.post("/mutual-referrer")
@limiter.limit("5/minute")
async def mutual_referrer(
    request: Request,
    first_name1: Annotated[str, _name_form("firstName1")],
    last_name1: Annotated[str, _name_form("lastName1")],
    email1: Annotated[EmailStr, Form()],
    first_name2: Annotated[str, _name_form("firstName2")],
    last_name2: Annotated[str, _name_form("lastName2")],
    email2: Annotated[EmailStr, Form()],
    settings: Settings = Depends(get_settings),
    referral_service: MutualReferralService = Depends(get_referral_service),
):
    """Issue paired promo codes to two people and email them.

    Email delivery failures return 400 with Resend's error body.
    """
    referral = ReferralRequest(
        first=Participant(first_name=first_name1, last_name=last_name1, email=email1),
        second=Participant(first_name=first_name2, last_name=last_name2, email=email2),
    )

    try:
        await referral_service.execute(referral)
    except EmailDeliveryFailed as e:
        # Non-JSON upstream bodies are passed back as text
        if isinstance(e.payload, str):
            return PlainTextResponse(e.payload, status_code=status.HTTP_400_BAD_REQUEST)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.payload)

    return RedirectResponse(
        settings.redirect_url("mutual-referrer/return"),
        status_code=status.HTTP_302_FOUND,
    )
