"""
Payment gateways.

Checkout code only talks to BasePaymentGateway. Which implementation backs
it follows ENV_MODE:

    development  ->  MockPaymentGateway, no network
    staging      ->  RazorpayPaymentGateway with rzp_test_ keys
    production   ->  RazorpayPaymentGateway with rzp_live_ keys
"""

import logging
from functools import lru_cache

from foodie.core.config import get_settings
from foodie.services.payment.base import (
    BasePaymentGateway,
    GatewayOrderResult,
    compute_payment_signature,
    from_minor_units,
    to_minor_units,
)
from foodie.services.payment.mock import MockPaymentGateway
from foodie.services.payment.razorpay import RazorpayPaymentGateway

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_gateway() -> BasePaymentGateway:
    """
    Shared gateway for the process.

    Raises:
        ValueError: Razorpay selected without RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET
    """
    settings = get_settings()
    if settings.is_development:
        gateway = MockPaymentGateway(key_secret=settings.razorpay_key_secret)
    else:
        gateway = RazorpayPaymentGateway()
    logger.info(f"Payments through {gateway.provider_name} ({settings.env_mode.value})")
    return gateway


__all__ = [
    "BasePaymentGateway",
    "GatewayOrderResult",
    "MockPaymentGateway",
    "RazorpayPaymentGateway",
    "compute_payment_signature",
    "from_minor_units",
    "get_payment_gateway",
    "to_minor_units",
]
