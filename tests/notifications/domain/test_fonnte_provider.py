"""Tests for the Fonnte adapter, with httpx traffic served by a MockTransport."""

import json

import httpx
import pytest
from notifications.provider.fonnte import FonnteProvider, format_fonnte_phone
from shared.errors import ProviderFailure


def _provider(handler, timeout=30.0):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return FonnteProvider(api_token="secret-token", base_url="https://api.fonnte.test", timeout=timeout, client=client)


class TestFormatFonntePhone:
    @pytest.mark.parametrize(
        "phone, expected",
        [("081234567890", "6281234567890"), ("6281234567890", "6281234567890"), ("81234567890", "6281234567890")],
    )
    def test_format(self, phone, expected):
        assert format_fonnte_phone(phone) == expected


class TestSend:
    def test_success(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json={"status": True, "id": ["80367170"], "process": "pending"})

        result = _provider(handler).send("081234567890", "Halo Ani")

        assert result.success
        assert result.message_id == "80367170"
        assert json.loads(result.provider_response)["process"] == "pending"
        assert seen["url"].path == "/send"
        assert seen["url"].params["target"] == "6281234567890"
        assert seen["url"].params["token"] == "secret-token"
        assert seen["url"].params["message"] == "Halo Ani"

    def test_vendor_rejection_is_a_failed_result(self):
        def handler(request):
            return httpx.Response(200, json={"status": False, "reason": "invalid token"})

        result = _provider(handler).send("081234567890", "Halo")

        assert not result.success
        assert result.error_message == "invalid token"
        assert json.loads(result.provider_response) == {"status": False, "reason": "invalid token"}

    def test_http_error_status_is_a_failed_result(self):
        def handler(request):
            return httpx.Response(500, json={"status": False})

        result = _provider(handler).send("081234567890", "Halo")
        assert not result.success
        assert result.error_message == "HTTP 500"

    def test_timeout_is_a_failed_result(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = _provider(handler, timeout=5.0).send("081234567890", "Halo")
        assert not result.success
        assert result.error_message == "Request timed out after 5s"

    def test_unreachable_gateway_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderFailure) as exc:
            _provider(handler).send("081234567890", "Halo")
        assert "Failed to reach Fonnte" in str(exc.value)

    def test_non_json_body_raises_with_raw_payload(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        with pytest.raises(ProviderFailure) as exc:
            _provider(handler).send("081234567890", "Halo")
        assert exc.value.provider_response == "<html>Bad Gateway</html>"


class TestConnection:
    def test_connected(self):
        def handler(request):
            assert request.url.path == "/device"
            return httpx.Response(200, json={"status": True, "device": "628111222333"})

        result = _provider(handler).test_connection()
        assert result.success
        assert result.message == "Connected to 628111222333"

    def test_rejected(self):
        def handler(request):
            return httpx.Response(200, json={"status": False, "reason": "token invalid"})

        result = _provider(handler).test_connection()
        assert not result.success
        assert result.message == "token invalid"

    def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        result = _provider(handler, timeout=2.0).test_connection()
        assert not result.success
        assert "timed out" in result.message
