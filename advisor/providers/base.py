"""Base upstream adapter interface.

Each adapter implements `_fetch` (raises UpstreamError on any failure) and
`fallback` (a static value of the same shape). `fetch` is the one place
where a failure is flattened into the fallback value.
"""
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

import httpx

from advisor.core.error_codes import UpstreamError, UpstreamUnavailable
from advisor.core.logging import get_logger
from advisor.core.utils import truncate

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 5.0


class UpstreamAdapter(ABC, Generic[T]):
    """Abstract base class for third-party API adapters."""

    name: str = "upstream"

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout_seconds
        # Tests inject httpx.MockTransport here
        self.transport = transport

    @abstractmethod
    async def _fetch(self, *args, **kwargs) -> T:
        """Call the upstream and normalize its response. Raises UpstreamError."""

    @abstractmethod
    def fallback(self) -> T:
        """Static value returned whenever `_fetch` fails."""

    async def fetch(self, *args, **kwargs) -> T:
        """Call the upstream; never raises, returns the fallback on failure."""
        t0 = time.monotonic()
        try:
            result = await self._fetch(*args, **kwargs)
        except UpstreamError as e:
            logger.warning(
                "%s failed, using fallback: %s", self.name, truncate(e.message),
                extra={
                    "upstream": self.name,
                    "error_class": e.error_code.value,
                    "elapsed_ms": int((time.monotonic() - t0) * 1000),
                },
            )
            return self.fallback()
        except Exception as e:
            logger.warning(
                "%s raised unexpectedly, using fallback: %s", self.name, truncate(e),
                extra={
                    "upstream": self.name,
                    "error_class": type(e).__name__,
                    "elapsed_ms": int((time.monotonic() - t0) * 1000),
                },
            )
            return self.fallback()

        logger.debug(
            "%s ok", self.name,
            extra={"upstream": self.name, "elapsed_ms": int((time.monotonic() - t0) * 1000)},
        )
        return result

    def client(self) -> httpx.AsyncClient:
        """Request-scoped client; nothing is shared between concurrent calls."""
        kwargs: Dict[str, Any] = {"timeout": self.timeout, "follow_redirects": True}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return httpx.AsyncClient(**kwargs)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
    ) -> Any:
        """Issue one request and decode the JSON body.

        Network errors, timeouts, non-2xx statuses and non-JSON bodies all
        raise UpstreamUnavailable.
        """
        try:
            async with self.client() as client:
                response = await client.request(
                    method, url, params=params, headers=headers, json=json_body
                )
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(self.name, f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(self.name, f"network error: {e}") from e

        if not response.is_success:
            raise UpstreamUnavailable(
                self.name,
                f"HTTP {response.status_code} {response.reason_phrase}",
                details={"status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable(self.name, "response body is not valid JSON") from e

    async def get_json(self, url: str, **kwargs) -> Any:
        return await self.request_json("GET", url, **kwargs)

    async def post_json(self, url: str, **kwargs) -> Any:
        return await self.request_json("POST", url, **kwargs)
