"""Fonnte WhatsApp gateway adapter over httpx."""

import json
import re

import httpx
import structlog

from notifications.provider.port import ConnectionResult, MessageProvider, SendResult
from shared.errors import ProviderFailure

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.fonnte.com"
DEFAULT_TIMEOUT = 30.0


def format_fonnte_phone(phone: str, country_code: str = "62") -> str:
    """Digits only, local leading 0 replaced by the country code."""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("0"):
        digits = country_code + digits[1:]
    elif not digits.startswith(country_code):
        digits = country_code + digits
    return digits


def _is_success(payload: dict) -> bool:
    status = payload.get("status")
    return status is True or status == "success"


class FonnteProvider(MessageProvider):
    name = "fonnte"

    def __init__(self, api_token: str, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT, client=None):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get(self, path: str, params: dict) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return self._client.get(url, params=params, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(url, params=params)

    def send(self, recipient: str, message: str) -> SendResult:
        target = format_fonnte_phone(recipient)
        try:
            response = self._get("/send", {"token": self.api_token, "target": target, "message": message})
        except httpx.TimeoutException:
            logger.warning("Fonnte request timed out", target=target, timeout=self.timeout)
            return SendResult(success=False, error_message=f"Request timed out after {self.timeout:g}s")
        except httpx.HTTPError as exc:
            logger.error("Fonnte request failed", target=target, error=str(exc))
            raise ProviderFailure(f"Failed to reach Fonnte: {exc}") from exc

        raw = response.text
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderFailure(
                f"Unexpected response from Fonnte (HTTP {response.status_code})",
                provider_response=raw,
            ) from exc

        if response.is_success and _is_success(payload):
            message_id = payload.get("id") or payload.get("message_id")
            if isinstance(message_id, list):
                message_id = message_id[0] if message_id else None
            return SendResult(
                success=True,
                message_id=str(message_id) if message_id is not None else None,
                provider_response=json.dumps(payload),
            )

        reason = payload.get("reason") or payload.get("message") or f"HTTP {response.status_code}"
        return SendResult(success=False, provider_response=json.dumps(payload), error_message=str(reason))

    def test_connection(self) -> ConnectionResult:
        try:
            response = self._get("/device", {"token": self.api_token})
            payload = response.json()
        except httpx.TimeoutException:
            return ConnectionResult(success=False, message=f"Connection timed out after {self.timeout:g}s")
        except (httpx.HTTPError, ValueError) as exc:
            return ConnectionResult(success=False, message=f"Connection failed: {exc}")

        if response.is_success and _is_success(payload):
            device = payload.get("device") or payload.get("name") or "device"
            return ConnectionResult(success=True, message=f"Connected to {device}")
        return ConnectionResult(success=False, message=str(payload.get("reason") or "Connection rejected"))

    def info(self) -> dict:
        return {
            "name": self.name,
            "display_name": "Fonnte (WhatsApp)",
            "base_url": self.base_url,
            "timeout": self.timeout,
        }
