"""Checker service - performs HTTP and TCP reachability checks."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from ..config import settings
from ..models.target import STATUS_DOWN, STATUS_UP
from ..schemas.monitoring import DEFAULT_RESPONSE_THRESHOLD_MS

logger = logging.getLogger(__name__)

DEFAULT_TCP_PORT = 80


@dataclass
class CheckResult:
    """Result of a monitoring check. Every outcome has this shape."""
    status: str  # up, down
    response_time_ms: Optional[int] = None
    error_message: Optional[str] = None


def parse_host_port(address: str) -> Tuple[str, int]:
    """Split host[:port], defaulting to port 80."""
    if "://" in address:
        address = address.split("://", 1)[1]
    address = address.split("/", 1)[0]

    host, port = address, DEFAULT_TCP_PORT
    if address.startswith("["):
        # [ipv6]:port
        bracket_end = address.find("]")
        host = address[1:bracket_end]
        rest = address[bracket_end + 1:]
        if rest.startswith(":") and rest[1:].isdigit():
            port = int(rest[1:])
        return host, port

    if address.count(":") == 1:
        host, port_str = address.split(":", 1)
        try:
            port = int(port_str)
        except ValueError:
            port = DEFAULT_TCP_PORT
    return host, port


def slow_response_message(response_time_ms: int, threshold_ms: int) -> str:
    return f"Slow response: {response_time_ms}ms exceeds threshold of {threshold_ms}ms"


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class CheckerService:
    """Service for performing reachability checks with a bounded timeout."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.check_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self._transport = transport

    async def check(
        self,
        target_type: str,
        address: str,
        response_threshold_ms: int = DEFAULT_RESPONSE_THRESHOLD_MS,
    ) -> CheckResult:
        """Check a target. Never raises; failures resolve to a down result."""
        try:
            if target_type == "tcp":
                result = await self._check_tcp(address)
            else:
                # website, http, https, api and database endpoints are probed over HTTP
                result = await self._check_http(address)
        except Exception as e:
            logger.error(f"Unexpected error checking {address}: {type(e).__name__}: {e}")
            result = CheckResult(status=STATUS_DOWN, error_message=str(e) or type(e).__name__)

        # Slow success stays up, the annotation drives response-time alerting
        if (
            result.status == STATUS_UP
            and result.response_time_ms is not None
            and result.response_time_ms > response_threshold_ms
        ):
            result.error_message = slow_response_message(result.response_time_ms, response_threshold_ms)

        return result

    async def _check_http(self, address: str) -> CheckResult:
        """GET the address; only HTTP 200 counts as up."""
        url = address if "://" in address else f"http://{address}"
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)

            response_time = _elapsed_ms(start)

            if response.status_code == 200:
                return CheckResult(status=STATUS_UP, response_time_ms=response_time)

            return CheckResult(
                status=STATUS_DOWN,
                response_time_ms=response_time,
                error_message=f"HTTP {response.status_code}: {response.reason_phrase}",
            )

        except httpx.TimeoutException:
            return CheckResult(
                status=STATUS_DOWN,
                response_time_ms=_elapsed_ms(start),
                error_message=f"Request timeout after {self.timeout}s",
            )
        except httpx.ConnectError as e:
            return CheckResult(
                status=STATUS_DOWN,
                response_time_ms=_elapsed_ms(start),
                error_message=f"Connection error: {e}",
            )
        except httpx.HTTPError as e:
            return CheckResult(
                status=STATUS_DOWN,
                response_time_ms=_elapsed_ms(start),
                error_message=str(e) or type(e).__name__,
            )

    async def _check_tcp(self, address: str) -> CheckResult:
        """Open and close a TCP connection to host[:port]."""
        host, port = parse_host_port(address)
        start = time.perf_counter()
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.timeout,
            )
            response_time = _elapsed_ms(start)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
            return CheckResult(status=STATUS_UP, response_time_ms=response_time)

        except asyncio.TimeoutError:
            return CheckResult(
                status=STATUS_DOWN,
                response_time_ms=_elapsed_ms(start),
                error_message=f"Connection timeout after {self.timeout}s",
            )
        except OSError as e:
            return CheckResult(
                status=STATUS_DOWN,
                response_time_ms=_elapsed_ms(start),
                error_message=f"Connection error: {e.strerror or e}",
            )


# Global instance
checker_service = CheckerService()
