"""
Gateway contract and the helpers every implementation shares.

Prepaid checkout follows Razorpay standard checkout:
    1. Server creates a gateway order for the cart amount
    2. Client completes payment in the gateway widget
    3. Gateway hands the client (order_id, payment_id, signature)
    4. Server verifies signature = HMAC-SHA256(key_secret, "order_id|payment_id")
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


def to_minor_units(amount: float) -> int:
    """
    Convert a major-unit amount to the gateway's smallest currency unit.

    Args:
        amount: Amount in rupees (e.g., 299.50)

    Returns:
        int: Amount in paise (e.g., 29950)
    """
    return int(round(amount * 100))


def from_minor_units(amount: int) -> float:
    return amount / 100.0


def compute_payment_signature(order_id: str, payment_id: str, key_secret: str) -> str:
    """Hex HMAC-SHA256 of "order_id|payment_id" keyed by the gateway secret."""
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(key_secret.encode(), message, hashlib.sha256).hexdigest()


@dataclass
class GatewayOrderResult:
    """
    What create_order returns; the HTTP layer maps failures to 502.

    Attributes:
        success: Whether the gateway accepted the order
        order_id: Gateway order identifier (Razorpay format: order_xxx)
        amount: Amount in minor units (paise)
        currency: Currency code (e.g., "INR")
        receipt: Merchant receipt reference
        status: Gateway order status (created, attempted, paid)
        error_message: Error description if creation failed
        error_code: Machine-readable error code
        response_time_ms: Time taken by the gateway call
    """
    success: bool
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: str = "INR"
    receipt: Optional[str] = None
    status: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0

    def to_dict(self) -> dict:
        """Gateway order as returned to the storefront."""
        return {
            "id": self.order_id,
            "amount": self.amount,
            "currency": self.currency,
            "receipt": self.receipt,
            "status": self.status,
        }


class BasePaymentGateway(ABC):
    """Creates gateway orders and checks payment signatures."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider label, mock or razorpay."""

    @property
    @abstractmethod
    def key_id(self) -> Optional[str]:
        """Public key the storefront needs to open the checkout widget."""
        pass

    @abstractmethod
    async def create_order(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> GatewayOrderResult:
        """
        Create a gateway order the customer will pay against.

        Args:
            amount: Amount in major units (converted to paise internally)
            currency: Three-letter currency code
            receipt: Merchant receipt reference
            notes: Additional key-value data to attach

        Returns:
            GatewayOrderResult, never raises for gateway errors
        """
        pass

    @abstractmethod
    def verify_payment_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """
        Check the signature the gateway handed to the client after payment.

        Returns:
            bool: True only if the signature matches
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Whether the gateway API answers."""
        pass
