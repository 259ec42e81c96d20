"""Pydantic schemas for payment links."""

from typing import Optional

from pydantic import BaseModel, Field


class Customer(BaseModel):
    """Customer a payment link was issued to."""

    name: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None


class PaymentLink(BaseModel):
    """A captured payment link as reported by the payments provider."""

    id: str
    amount: int = 0  # Minor units (paise/cents)
    currency: str = "INR"
    status: str = "unknown"
    short_url: Optional[str] = None
    description: Optional[str] = None
    customer: Customer = Field(default_factory=Customer)

    model_config = {"extra": "ignore"}

    @property
    def amount_major(self) -> float:
        """Amount in major currency units."""
        return self.amount / 100


class PaymentLinkList(BaseModel):
    """Envelope of the captured-links listing."""

    payment_links: list[PaymentLink] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class PaymentLinkRequest(BaseModel):
    """Input for generating a payment link."""

    description: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
