"""Base HTTP client with circuit breaker and retry logic.

This module provides:
- CircuitState enum for circuit breaker states
- CircuitBreaker dataclass for tracking circuit breaker state
- BaseAPIClient class for making resilient HTTP requests to JSON-RPC nodes
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import httpx
import structlog

from operatorfilter.core.exceptions import CircuitBreakerOpenError, ExternalServiceError

log = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation, requests allowed
    OPEN = "open"  # Circuit tripped, requests blocked
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreaker:
    """Circuit breaker protecting the node from repeated failing calls.

    Opens after ``failure_threshold`` consecutive failures and lets a single
    test request through once ``cooldown_seconds`` have elapsed.

    Attributes:
        failure_threshold: Consecutive failures before the circuit opens.
        cooldown_seconds: Seconds to wait before the half-open test.
        failure_count: Current consecutive failure count.
        last_failure_time: Timestamp of the most recent failure.
        state: Current circuit state.
    """

    failure_threshold: int = 5
    cooldown_seconds: int = 30
    failure_count: int = field(default=0, init=False)
    last_failure_time: datetime | None = field(default=None, init=False)
    state: CircuitState = field(default=CircuitState.CLOSED, init=False)

    def record_success(self) -> None:
        """Reset failure count and close the circuit."""
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Count a failure and open the circuit when the threshold is hit."""
        self.failure_count += 1
        self.last_failure_time = datetime.now(UTC)

        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != CircuitState.OPEN:
                log.warning(
                    "circuit_breaker_opened",
                    failure_count=self.failure_count,
                    threshold=self.failure_threshold,
                )
            self.state = CircuitState.OPEN

    def can_execute(self) -> bool:
        """Check if a request may be sent.

        Returns:
            True if the request is allowed. An OPEN circuit moves to
            HALF_OPEN once the cooldown has elapsed.
        """
        if self.state != CircuitState.OPEN:
            return True
        if self.last_failure_time is None:
            return False

        elapsed = datetime.now(UTC) - self.last_failure_time
        if elapsed > timedelta(seconds=self.cooldown_seconds):
            self.state = CircuitState.HALF_OPEN
            log.info("circuit_breaker_half_open", cooldown_elapsed=elapsed.total_seconds())
            return True
        return False

    def raise_if_open(self) -> None:
        """Raise if requests are currently blocked.

        Raises:
            CircuitBreakerOpenError: If the circuit is open and cooling down.
        """
        if not self.can_execute():
            raise CircuitBreakerOpenError(
                f"Circuit breaker is open. Next retry in "
                f"{self._time_until_half_open():.1f} seconds."
            )

    def _time_until_half_open(self) -> float:
        """Seconds until the circuit turns half-open, or 0 if ready."""
        if self.last_failure_time is None:
            return 0.0
        elapsed = datetime.now(UTC) - self.last_failure_time
        return max(0.0, self.cooldown_seconds - elapsed.total_seconds())


class BaseAPIClient:
    """Base HTTP client with retry and circuit breaker support.

    Provides lazy httpx client creation, retry with exponential backoff on
    429/5xx and transport errors, and a circuit breaker shared by all
    requests of the instance.

    Attributes:
        base_url: Base URL for all requests.
        timeout: Request timeout in seconds.
        headers: Default headers for all requests.

    Example:
        client = BaseAPIClient(base_url="https://rpc.example.com")
        response = await client.post("", json=payload)
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        """Initialize BaseAPIClient.

        Args:
            base_url: Base URL for all requests.
            timeout: Request timeout in seconds (default: 30).
            headers: Default headers for all requests.
            circuit_breaker_threshold: Failures before circuit opens (default: 5).
            circuit_breaker_cooldown: Seconds before half-open (default: 30).
        """
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=circuit_breaker_threshold,
            cooldown_seconds=circuit_breaker_cooldown,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client (lazy initialization).

        Returns:
            The httpx AsyncClient instance.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
            )
            log.debug("httpx_client_created", base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        """Close the httpx client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("httpx_client_closed", base_url=self.base_url)

    async def _request(
        self,
        method: str,
        path: str,
        max_retries: int = 3,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request with retry and circuit breaker.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``.
            max_retries: Attempts before giving up (default: 3).
            **kwargs: Passed through to ``httpx.AsyncClient.request``.

        Returns:
            The successful response.

        Raises:
            CircuitBreakerOpenError: If circuit breaker is open.
            ExternalServiceError: If request fails after all retries.
        """
        self._circuit_breaker.raise_if_open()

        client = await self._get_client()
        last_error: Exception | None = None

        for attempt in range(max_retries):
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                self._circuit_breaker.record_success()
                return response

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code

                # 4xx errors (except 429) - no retry, fail immediately
                if 400 <= status_code < 500 and status_code != 429:
                    log.warning(
                        "request_client_error",
                        method=method,
                        status_code=status_code,
                        error=str(e),
                    )
                    raise ExternalServiceError(
                        service=self.base_url,
                        message=str(e),
                        status_code=status_code,
                    ) from e

                self._circuit_breaker.record_failure()
                last_error = e
                log.warning(
                    "request_server_error",
                    method=method,
                    status_code=status_code,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )

            except (httpx.TimeoutException, httpx.RequestError) as e:
                self._circuit_breaker.record_failure()
                last_error = e
                log.warning(
                    "request_connection_error",
                    method=method,
                    error=str(e),
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )

            # Exponential backoff: 1s, 2s, 4s (capped)
            if attempt < max_retries - 1:
                await asyncio.sleep(min(2**attempt, 4))

        log.error("request_max_retries_exceeded", method=method, max_retries=max_retries)
        raise ExternalServiceError(
            service=self.base_url,
            message=f"Max retries ({max_retries}) exceeded: {last_error}",
        )

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a POST request.

        Args:
            path: Path relative to ``base_url``.
            **kwargs: Request options such as ``json``.

        Returns:
            The successful response.
        """
        return await self._request("POST", path, **kwargs)
