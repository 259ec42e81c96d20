"""API module for the hosted GraphQL gateway."""

from .gateway import (
    GatewayClient,
    GatewayError,
    GatewayHTTPError,
    GatewayResponseError,
    OpenBookResult,
    SearchHit,
)

__all__ = [
    "GatewayClient",
    "GatewayError",
    "GatewayHTTPError",
    "GatewayResponseError",
    "OpenBookResult",
    "SearchHit",
]
