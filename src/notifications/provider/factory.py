"""Build provider adapters from a tenant's messaging configuration.

A `ProviderFactory` is constructed once by the application (or once per
test) and passed to whatever dispatches messages. Only Fonnte ships with a
real adapter; other providers can be registered with `register`.
"""

from protean.exceptions import ValidationError

from notifications.provider.fonnte import FonnteProvider
from notifications.provider.port import MessageProvider
from shared.config import get_settings


def build_fonnte(credentials: dict, timeout: float) -> FonnteProvider:
    settings = get_settings()
    api_url = credentials.get("api_url") or settings.FONNTE_BASE_URL
    # Credentials store the full send endpoint; the adapter wants the host
    base_url = api_url[: -len("/send")] if api_url.rstrip("/").endswith("/send") else api_url
    return FonnteProvider(api_token=credentials.get("api_token", ""), base_url=base_url.rstrip("/"), timeout=timeout)


class ProviderFactory:
    def __init__(self, builders=None, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else get_settings().PROVIDER_TIMEOUT_SECONDS
        self._builders = {"fonnte": build_fonnte}
        self._builders.update(builders or {})

    def register(self, provider: str, builder) -> None:
        """`builder(credentials, timeout)` must return a `MessageProvider`."""
        self._builders[provider] = builder

    def supports(self, provider: str) -> bool:
        return provider in self._builders

    def create(self, messaging_config) -> MessageProvider:
        builder = self._builders.get(messaging_config.provider)
        if builder is None:
            raise ValidationError({"provider": [f"Provider '{messaging_config.provider}' is not implemented"]})
        return builder(messaging_config.credentials, self.timeout)
