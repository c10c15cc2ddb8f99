"""
In-process stand-in for Razorpay.

Gateway orders get random order_mock... ids, a configurable share of them
fail with Razorpay-style error codes, and each call sleeps for a random
latency. Signatures use the same HMAC as production, keyed with
RAZORPAY_KEY_SECRET when set and with MOCK_KEY_SECRET otherwise, so a
frontend can complete a prepaid checkout without credentials.
"""

import asyncio
import hmac
import logging
import random
import uuid
from typing import Optional

from foodie.services.payment.base import (
    BasePaymentGateway,
    GatewayOrderResult,
    compute_payment_signature,
    to_minor_units,
)

logger = logging.getLogger(__name__)

MOCK_KEY_ID = "rzp_test_mock"
MOCK_KEY_SECRET = "mock_key_secret"


class MockPaymentGateway(BasePaymentGateway):
    """
    Razorpay look-alike for development and tests.

    failure_rate is the chance (0.0-1.0) that create_order fails; latency is
    drawn uniformly from [min_latency, max_latency] seconds. Tests pass zeros
    for all three.

    Example:
        >>> gateway = MockPaymentGateway(failure_rate=0.0)
        >>> result = await gateway.create_order(499.0, "INR", "foodie_order_1")
        >>> order_id = result.order_id
        >>> signature = gateway.sign(order_id, "pay_123")
        >>> gateway.verify_payment_signature(order_id, "pay_123", signature)
        True
    """

    # Simulated failure reasons (mimics Razorpay error codes)
    FAILURE_REASONS = [
        ("BAD_REQUEST_ERROR", "The amount must be at least INR 1.00."),
        ("GATEWAY_ERROR", "Payment processing failed due to an error at the gateway."),
        ("SERVER_ERROR", "The server encountered an error."),
    ]

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.4,
        key_secret: Optional[str] = None,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.key_secret = key_secret or MOCK_KEY_SECRET

        logger.info(f"Mock gateway: {failure_rate:.0%} failures, {min_latency}-{max_latency}s latency")

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def key_id(self) -> Optional[str]:
        return MOCK_KEY_ID

    def _generate_order_id(self) -> str:
        return f"order_mock{uuid.uuid4().hex[:14]}"

    async def _simulate_latency(self) -> float:
        """Sleep like a network round trip; returns the delay in ms."""
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    def sign(self, order_id: str, payment_id: str) -> str:
        """Produce the signature the gateway would hand to the client."""
        return compute_payment_signature(order_id, payment_id, self.key_secret)

    async def create_order(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> GatewayOrderResult:
        logger.debug(f"Mock: Creating gateway order of {amount:.2f} {currency}")

        if amount <= 0:
            return GatewayOrderResult(
                success=False,
                currency=currency,
                receipt=receipt,
                error_message="Amount must be greater than 0",
                error_code="BAD_REQUEST_ERROR",
            )

        latency_ms = await self._simulate_latency()

        if self._should_fail():
            error_code, error_message = random.choice(self.FAILURE_REASONS)
            logger.debug(f"Mock: Gateway order failed - {error_code}")
            return GatewayOrderResult(
                success=False,
                currency=currency,
                receipt=receipt,
                error_message=error_message,
                error_code=error_code,
                response_time_ms=latency_ms,
            )

        order_id = self._generate_order_id()
        logger.info(f"Mock: Gateway order created - {order_id} - {amount:.2f} {currency}")

        return GatewayOrderResult(
            success=True,
            order_id=order_id,
            amount=to_minor_units(amount),
            currency=currency,
            receipt=receipt,
            status="created",
            response_time_ms=latency_ms,
        )

    def verify_payment_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        expected = self.sign(order_id, payment_id)
        valid = hmac.compare_digest(expected, signature)
        if not valid:
            logger.warning(f"Mock: Signature mismatch for gateway order {order_id}")
        return valid

    async def health_check(self) -> bool:
        return True
