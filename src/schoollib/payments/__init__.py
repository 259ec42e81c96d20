"""Payments module."""

from .manager import PaymentManager, parse_payment_links
from .schemas import Customer, PaymentLink, PaymentLinkList, PaymentLinkRequest

__all__ = [
    "PaymentManager",
    "parse_payment_links",
    "Customer",
    "PaymentLink",
    "PaymentLinkList",
    "PaymentLinkRequest",
]
