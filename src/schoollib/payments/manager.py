"""Payment link operations (library fines and fees)."""

import json
import logging

from pydantic import ValidationError

from ..api.gateway import GatewayClient, GatewayResponseError
from .schemas import PaymentLink, PaymentLinkList, PaymentLinkRequest

logger = logging.getLogger(__name__)


class PaymentManager:
    """Creates and lists payment links through the gateway."""

    def __init__(self, gateway: GatewayClient):
        self.gateway = gateway

    def create_link(self, request: PaymentLinkRequest) -> str:
        """Generate a payment link.

        Returns:
            The link URL
        """
        url = self.gateway.generate_payment_link(
            request.description,
            request.customer_name,
            request.customer_email,
        )
        logger.info("Payment link created for %s", request.customer_email)
        return url

    def list_captured(self) -> list[PaymentLink]:
        """List captured payment links.

        Raises:
            GatewayResponseError: If the listing cannot be parsed
        """
        raw = self.gateway.fetch_captured_payment_links()
        return parse_payment_links(raw)


def parse_payment_links(raw: str) -> list[PaymentLink]:
    """Parse the captured-links listing.

    Accepts a bare JSON document, or text with a label in front of the
    JSON (``"Captured payment links: {...}"``).
    """
    raw = raw.strip()
    if not raw:
        return []

    start = min((i for i in (raw.find("{"), raw.find("[")) if i >= 0), default=-1)
    if start < 0:
        raise GatewayResponseError("Payment listing contains no JSON")

    try:
        data = json.loads(raw[start:])
        if isinstance(data, list):
            data = {"payment_links": data}
        return PaymentLinkList.model_validate(data).payment_links
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("Could not parse payment listing: %s", e)
        raise GatewayResponseError(f"Invalid payment listing: {e}") from e
