"""
Identify API Route

POST /identify consolidates an email and/or phone number into the caller's
contact identity.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from reconciliation.identity import ConsolidatedView, ContactStore, get_contact_store, identify
from reconciliation.kernel.errors import InvalidInputError

logger = structlog.get_logger()

router = APIRouter(tags=["identify"])


# =============================================================================
# Request / Response Models
# =============================================================================


class IdentifyRequest(BaseModel):
    """Untyped request body; `_validate` narrows both fields to optional strings."""

    email: Any = None
    phoneNumber: Any = None


class IdentifiedContact(BaseModel):
    primaryContactId: int
    emails: list[str]
    phoneNumbers: list[str]
    secondaryContactIds: list[int]

    @classmethod
    def from_view(cls, view: ConsolidatedView) -> "IdentifiedContact":
        return cls(
            primaryContactId=view.primary_contact_id,
            emails=view.emails,
            phoneNumbers=view.phone_numbers,
            secondaryContactIds=view.secondary_contact_ids,
        )


class IdentifyResponse(BaseModel):
    contact: IdentifiedContact


def _validate(body: IdentifyRequest) -> tuple[str | None, str | None]:
    """
    Reject bodies with no usable field or a non-string field.

    JSON `null` and `""` count as absent, so `{"email": null, "phoneNumber": "1"}`
    is accepted with no email.
    """
    if not body.email and not body.phoneNumber:
        raise InvalidInputError()
    if body.email is not None and not isinstance(body.email, str):
        raise InvalidInputError(message="email must be a string.", code="request.invalid_email")
    if body.phoneNumber is not None and not isinstance(body.phoneNumber, str):
        raise InvalidInputError(
            message="phoneNumber must be a string.",
            code="request.invalid_phone_number",
        )
    return body.email, body.phoneNumber


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/identify", response_model=IdentifyResponse)
async def identify_contact(
    body: IdentifyRequest,
    store: ContactStore = Depends(get_contact_store),
) -> IdentifyResponse:
    """Resolve the observation and return the consolidated contact."""
    email, phone_number = _validate(body)

    view = await identify(store, email=email, phone_number=phone_number)
    return IdentifyResponse(contact=IdentifiedContact.from_view(view))
