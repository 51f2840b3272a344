from typing import Mapping, Optional

import httpx


class OpenAIMCPError(Exception):
    """Base exception for the service."""


class ConfigurationError(OpenAIMCPError):
    """Raised when required configuration (the API key) is missing."""


class TransportError(OpenAIMCPError):
    """Raised for network, DNS, TLS and timeout failures talking to the provider."""


class DispatchCancelledError(OpenAIMCPError):
    """Raised when a cancel signal fires while a request is waiting for its turn."""


class ProviderError(OpenAIMCPError):
    """Raised when the provider answers with a non-2xx status.

    The status, raw body and headers are kept so callers can inspect them.
    """

    def __init__(
        self,
        status_code: int,
        body: str,
        headers: Optional[Mapping[str, str]] = None,
        response: Optional[httpx.Response] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers or {})
        self.response = response
        super().__init__(f"Provider returned HTTP {status_code}: {body}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ProviderError":
        klass = RateLimitExceededError if response.status_code == 429 else ProviderError
        return klass(
            status_code=response.status_code,
            body=response.text,
            headers=response.headers,
            response=response,
        )


class RateLimitExceededError(ProviderError):
    """Raised for HTTP 429. Retried by the dispatcher until the budget runs out."""

    @property
    def retry_after(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "retry-after":
                return value
        return None
