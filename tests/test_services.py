import asyncio
import threading
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import jwt
import pytest
import requests
from pydantic import ValidationError
from sqlalchemy import select

from foodie.core.config import DEFAULT_JWT_SECRET, EnvironmentMode, Settings, get_settings
from foodie.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from foodie.database import async_session_maker
from foodie.models import Token
from foodie.services.geo import MockGeoService, NominatimGeoService
from foodie.services.payment import (
    MockPaymentGateway,
    RazorpayPaymentGateway,
    compute_payment_signature,
    from_minor_units,
    to_minor_units,
)


class TestSecurity:
    def test_password_round_trip(self):
        hashed = hash_password("hunter2")

        assert hashed != "hunter2"
        assert verify_password("hunter2", hashed)
        assert not verify_password("hunter3", hashed)

    def test_malformed_hash(self):
        assert verify_password("hunter2", "not-a-bcrypt-hash") is False

    def test_token_claims(self):
        token, expires_at = create_access_token({"id": 7, "role": "USER"}, timedelta(days=1))

        payload = decode_access_token(token)
        assert payload["id"] == 7
        assert payload["role"] == "USER"
        assert expires_at > datetime.now(timezone.utc)

    def test_expired_token(self):
        token, _ = create_access_token({"id": 7}, timedelta(seconds=-1))

        assert decode_access_token(token) is None

    def test_foreign_signature(self):
        token = jwt.encode({"id": 7}, "someone-else", algorithm="HS256")

        assert decode_access_token(token) is None


class TestPaymentSignature:
    def test_signature_covers_every_input(self):
        signature = compute_payment_signature("order_1", "pay_1", "secret")

        assert len(signature) == 64
        assert signature == compute_payment_signature("order_1", "pay_1", "secret")
        assert signature != compute_payment_signature("order_1", "pay_2", "secret")
        assert signature != compute_payment_signature("order_1", "pay_1", "other")

    def test_mock_gateway_verifies_its_own_signatures(self):
        gateway = MockPaymentGateway(failure_rate=0, min_latency=0, max_latency=0, key_secret="k")

        assert gateway.verify_payment_signature("order_1", "pay_1", gateway.sign("order_1", "pay_1"))
        assert not gateway.verify_payment_signature("order_1", "pay_1", gateway.sign("order_1", "pay_2"))

    def test_minor_units(self):
        assert to_minor_units(299.5) == 29950
        assert to_minor_units(0.1 + 0.2) == 30
        assert from_minor_units(29950) == 299.5

    def test_mock_order(self):
        gateway = MockPaymentGateway(failure_rate=0, min_latency=0, max_latency=0)

        result = asyncio.run(gateway.create_order(10.0, "INR", "foodie_order_1"))

        assert result.success
        assert result.amount == 1000
        assert result.to_dict()["receipt"] == "foodie_order_1"

    def test_mock_rejects_non_positive_amount(self):
        gateway = MockPaymentGateway(failure_rate=0, min_latency=0, max_latency=0)

        result = asyncio.run(gateway.create_order(0, "INR", "r"))

        assert not result.success
        assert result.error_code == "BAD_REQUEST_ERROR"


class TestGeo:
    def test_mock_is_deterministic(self):
        service = MockGeoService(min_latency=0, max_latency=0)

        first = asyncio.run(service.reverse_geocode(12.9716, 77.5946))
        second = asyncio.run(service.reverse_geocode(12.9716, 77.5946))

        assert first.success
        assert first.display_name == second.display_name

    def test_mock_rejects_invalid_coordinates(self):
        result = asyncio.run(MockGeoService(0, 0).reverse_geocode(91, 0))

        assert result.error_code == "invalid_coordinates"

    def test_nominatim_success(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["agent"] = request.headers["user-agent"]
            return httpx.Response(
                200,
                json={"display_name": "MG Road, Bengaluru", "address": {"road": "MG Road", "city": "Bengaluru"}},
            )

        service = NominatimGeoService(transport=httpx.MockTransport(handler))

        result = asyncio.run(service.reverse_geocode(12.97, 77.59))

        assert result.success
        assert result.address["road"] == "MG Road"
        assert seen["params"]["lat"] == "12.97"
        assert seen["params"]["format"] == "json"
        assert seen["agent"]

    def test_nominatim_unknown_place(self):
        service = NominatimGeoService(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "Unable to geocode"}))
        )

        result = asyncio.run(service.reverse_geocode(0.0, 0.0))

        assert not result.success
        assert result.error_code == "not_found"

    def test_nominatim_http_error(self):
        service = NominatimGeoService(
            transport=httpx.MockTransport(lambda request: httpx.Response(503))
        )

        result = asyncio.run(service.reverse_geocode(1.0, 1.0))

        assert result.error_code == "service_unavailable"


class TestTokenPurge:
    @pytest.fixture()
    def tokens(self, client, customer):
        now = datetime.now(timezone.utc)

        async def seed():
            async with async_session_maker() as db:
                db.add(Token(user_id=customer["user"]["id"], token="stale", expires_at=now - timedelta(hours=1)))
                await db.commit()

        asyncio.run(seed())

    def test_purge_removes_only_expired(self, tokens, client, customer_headers):
        from foodie.tasks import _purge_expired_tokens

        removed = asyncio.run(_purge_expired_tokens())

        assert removed == 1

        async def remaining():
            async with async_session_maker() as db:
                return (await db.execute(select(Token.token))).scalars().all()

        assert "stale" not in asyncio.run(remaining())
        assert client.get("/api/auth/me", headers=customer_headers).status_code == 200


class TestSettings:
    def test_mode_is_case_insensitive(self):
        settings = Settings(env_mode="Staging")

        assert settings.env_mode is EnvironmentMode.STAGING
        assert settings.use_real_services

    def test_unknown_mode(self):
        with pytest.raises(ValidationError):
            Settings(env_mode="qa")

    def test_bcrypt_rounds_range(self):
        with pytest.raises(ValidationError):
            Settings(bcrypt_rounds=3)

    def test_missing_production_config(self):
        settings = Settings(env_mode="production", razorpay_key_id=None, razorpay_key_secret=None,
                            jwt_secret=DEFAULT_JWT_SECRET)

        assert settings.validate_production_config() == ["RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "JWT_SECRET"]

    def test_development_needs_nothing(self):
        assert Settings(env_mode="development").validate_production_config() == []


class TestRazorpayGateway:
    @pytest.fixture()
    def razorpay_gateway(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "razorpay_key_id", "rzp_test_key")
        return RazorpayPaymentGateway()

    def test_sdk_call_runs_off_the_event_loop(self, razorpay_gateway):
        calls = []

        class Orders:
            def create(self, data):
                calls.append(threading.current_thread() is threading.main_thread())
                return {"id": "order_1", "amount": data["amount"], "currency": "INR",
                        "receipt": data["receipt"], "status": "created"}

        razorpay_gateway._client = SimpleNamespace(order=Orders())

        result = asyncio.run(razorpay_gateway.create_order(10.0, "INR", "foodie_order_1"))

        assert result.success
        assert result.amount == 1000
        assert calls == [False]

    def test_network_error(self, razorpay_gateway):
        class Orders:
            def create(self, data):
                raise requests.ConnectionError("unreachable")

        razorpay_gateway._client = SimpleNamespace(order=Orders())

        result = asyncio.run(razorpay_gateway.create_order(10.0, "INR", "foodie_order_1"))

        assert not result.success
        assert result.error_code == "CONNECTION_ERROR"
