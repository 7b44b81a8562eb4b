"""HTTP transport for the scanner provider.

One pooled httpx.AsyncClient per provider. Transport failures are translated
into the ProviderError family so callers never see raw httpx exceptions.
Failed calls are not retried here.
"""

import time
from typing import Any, Dict, Optional

import httpx

from shared.logging_utils import get_library_logger

logger = get_library_logger(__name__)


class ProviderError(Exception):
    """Any failed call to the data provider."""
    pass


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""
    pass


class ProviderHTTPError(ProviderError):
    """The provider answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ProviderHTTPError):
    """The provider itself throttled us (HTTP 429)."""

    def __init__(self, message: str, status_code: Optional[int] = 429, retry_after: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


def _retry_after_seconds(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Retry-After", "")
    return int(value) if value.isdigit() else None


class BaseHTTPTool:
    """Pooled JSON-over-HTTP client for a single provider."""

    DEFAULT_TIMEOUT = 10.0
    DEFAULT_USER_AGENT = "tradingview-mcp-server/1.0"
    POOL_LIMITS = httpx.Limits(max_keepalive_connections=5, max_connections=10, keepalive_expiry=30.0)

    def __init__(
        self,
        provider_name: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.provider_name = provider_name
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily open the pooled client on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=self.POOL_LIMITS,
                timeout=self.timeout,
                transport=self.transport
            )
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        headers.update(extra or {})
        return headers

    def _resolve(self, url: str) -> str:
        return url if url.startswith("http") else f"{self.base_url}{url}"

    def _translate(self, error: httpx.HTTPError) -> ProviderError:
        """Map an httpx failure onto the provider error hierarchy."""
        if isinstance(error, httpx.HTTPStatusError):
            response = error.response
            if response.status_code == 429:
                return RateLimitError(
                    f"{self.provider_name} rate limit exceeded",
                    retry_after=_retry_after_seconds(response)
                )
            return ProviderHTTPError(
                f"{self.provider_name} API error: {response.status_code} {response.reason_phrase}".rstrip(),
                status_code=response.status_code
            )
        if isinstance(error, httpx.TimeoutException):
            return ProviderTimeoutError("Request timeout")
        return ProviderError(f"{self.provider_name} request failed: {error}")

    async def post(
        self,
        url: str,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """POST a JSON body and return the decoded JSON response."""
        started = time.monotonic()
        try:
            response = await self._get_client().post(
                self._resolve(url),
                json=json_data,
                headers=self._get_headers(headers)
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            failure = self._translate(e)
            logger.error(
                f"{self.provider_name} POST {url} failed after {time.monotonic() - started:.2f}s: {failure}"
            )
            raise failure from e

        logger.debug(f"{self.provider_name} POST {url} -> {response.status_code} in {time.monotonic() - started:.2f}s")
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{self.provider_name} POST {url} returned a non-JSON body")
            raise ProviderError(f"{self.provider_name} returned invalid JSON: {e}") from e
