"""Verification of Clerk webhooks (delivered and signed by Svix)."""
import json
from collections.abc import Mapping
from typing import Any

from svix.webhooks import Webhook

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


class WebhookHeadersMissingError(Exception):
    """Raised when a webhook request lacks the Svix signature headers."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing webhook headers: {', '.join(missing)}")


def verify_clerk_webhook(
    payload: bytes,
    headers: Mapping[str, str],
    secret: str,
) -> dict[str, Any]:
    """
    Verify a webhook signature and return the decoded event.

    Args:
        payload: Raw request body, exactly as received.
        headers: Request headers (case-insensitive mapping).
        secret: Signing secret from the Clerk dashboard ("whsec_...").

    Raises:
        WebhookHeadersMissingError: If any Svix header is absent.
        svix.webhooks.WebhookVerificationError: If the signature or timestamp
            does not check out.
    """
    missing = [name for name in SVIX_HEADERS if not headers.get(name)]
    if missing:
        raise WebhookHeadersMissingError(missing)

    svix_headers = {name: headers[name] for name in SVIX_HEADERS}
    # verify() only checks the signature; the body is decoded separately.
    Webhook(secret).verify(payload, svix_headers)
    return json.loads(payload)
