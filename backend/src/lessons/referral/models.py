"""Mutual referral data models.

Nothing here is persisted: a request lives for one HTTP call and the
promotion codes only exist in Stripe and in the emails sent out.
"""

from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, StringConstraints

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Participant(BaseModel):
    """One of the two people being referred to each other."""

    first_name: Name
    last_name: Name
    email: EmailStr

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ReferralRequest(BaseModel):
    """Two participants who each get a promo code."""

    first: Participant
    second: Participant

    @property
    def participants(self) -> tuple[Participant, Participant]:
        return (self.first, self.second)


@dataclass(frozen=True)
class PromotionCode:
    """Promotion code issued to one participant."""

    owner_index: Literal[1, 2]
    code: str
    promotion_code_id: str
    max_redemptions: int = 1
