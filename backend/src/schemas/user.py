"""Pydantic schemas for users and Clerk user webhook payloads."""
from typing import Any

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Response model for user info."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str | None
    first_name: str | None
    last_name: str | None


class ClerkEmailAddress(BaseModel):
    """One entry of a Clerk user's email_addresses list."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    email_address: str


class ClerkUserData(BaseModel):
    """The `data` object of user.created / user.updated events."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email_addresses: list[ClerkEmailAddress] = []
    primary_email_address_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def primary_email(self) -> str | None:
        """Primary email address, falling back to the first one listed."""
        for address in self.email_addresses:
            if address.id is not None and address.id == self.primary_email_address_id:
                return address.email_address
        if self.email_addresses:
            return self.email_addresses[0].email_address
        return None


class ClerkWebhookEvent(BaseModel):
    """Envelope of a verified Clerk webhook event."""

    model_config = ConfigDict(extra="ignore")

    type: str
    data: dict[str, Any]
