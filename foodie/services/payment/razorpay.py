"""
Razorpay Payment Gateway Implementation

Production implementation using the official Razorpay Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set in environment

Security Notes:
    - Never trust a client-reported payment without verifying its signature
    - The key secret doubles as the HMAC key for payment signatures
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import razorpay
import requests
from razorpay.errors import (
    BadRequestError,
    GatewayError,
    ServerError,
    SignatureVerificationError,
)

from foodie.core.config import get_settings
from foodie.services.payment.base import (
    BasePaymentGateway,
    GatewayOrderResult,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class RazorpayPaymentGateway(BasePaymentGateway):
    """
    Production Razorpay gateway implementation.

    Creates orders through the Orders API and verifies the payment
    signatures returned by Razorpay Checkout. The SDK is blocking
    (requests), so its HTTP calls run in a worker thread.

    Example:
        >>> gateway = RazorpayPaymentGateway()
        >>> result = await gateway.create_order(499.0, "INR", "foodie_order_1")
    """

    def __init__(self):
        """
        Initialize the Razorpay client with keys from settings.

        Raises:
            ValueError: If the key id or secret is not configured
        """
        settings = get_settings()

        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            raise ValueError(
                "RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required outside "
                "development mode. Set them in your .env file or environment variables."
            )

        self._key_id = settings.razorpay_key_id
        self._client = razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))
        self._client.set_app_details({"title": settings.app_name, "version": settings.app_version})

        logger.info("RazorpayPaymentGateway initialized")

    @property
    def provider_name(self) -> str:
        return "razorpay"

    @property
    def key_id(self) -> Optional[str]:
        return self._key_id

    async def create_order(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> GatewayOrderResult:
        start_time = datetime.now()

        logger.info(f"Razorpay: Creating order of {amount:.2f} {currency}")

        if amount <= 0:
            return GatewayOrderResult(
                success=False,
                currency=currency,
                receipt=receipt,
                error_message="Amount must be greater than 0",
                error_code="BAD_REQUEST_ERROR",
            )

        try:
            order = await asyncio.to_thread(
                self._client.order.create,
                data={
                    "amount": to_minor_units(amount),
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes or {},
                },
            )

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

            logger.info(
                f"Razorpay: Order created - {order['id']} - "
                f"status={order.get('status')}"
            )

            return GatewayOrderResult(
                success=True,
                order_id=order["id"],
                amount=order["amount"],
                currency=order["currency"],
                receipt=order.get("receipt"),
                status=order.get("status"),
                response_time_ms=elapsed_ms,
            )

        except BadRequestError as e:
            # Invalid parameters or bad credentials
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Razorpay: Bad request - {e}")

            return GatewayOrderResult(
                success=False,
                currency=currency,
                receipt=receipt,
                error_message=str(e),
                error_code="BAD_REQUEST_ERROR",
                response_time_ms=elapsed_ms,
            )

        except (GatewayError, ServerError) as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Razorpay: Gateway error - {e}")

            return GatewayOrderResult(
                success=False,
                currency=currency,
                receipt=receipt,
                error_message="Payment gateway error",
                error_code="GATEWAY_ERROR",
                response_time_ms=elapsed_ms,
            )

        except requests.RequestException as e:
            # Network issues
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Razorpay: Connection error - {e}")

            return GatewayOrderResult(
                success=False,
                currency=currency,
                receipt=receipt,
                error_message="Payment gateway temporarily unavailable",
                error_code="CONNECTION_ERROR",
                response_time_ms=elapsed_ms,
            )

    def verify_payment_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        try:
            self._client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except SignatureVerificationError:
            logger.warning(f"Razorpay: Signature mismatch for order {order_id}")
            return False

        logger.debug(f"Razorpay: Signature verified for order {order_id}")
        return True

    async def health_check(self) -> bool:
        """
        Verify Razorpay API connectivity.

        Makes a lightweight API call to verify credentials and connectivity.
        """
        try:
            await asyncio.to_thread(self._client.order.all, {"count": 1})
            return True
        except (BadRequestError, GatewayError, ServerError, requests.RequestException) as e:
            logger.error(f"Razorpay: Health check failed - {e}")
            return False
