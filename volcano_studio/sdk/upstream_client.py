"""
HTTP upstream client.

Executes one upstream JSON call for fetch_cached. Failures are loud: the
client never retries and never substitutes a fallback body.
"""

import logging
from typing import Optional

import httpx

from ..core.errors import UpstreamError
from ..core.fetch import UpstreamRequest, UpstreamResponse

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Async callable that performs a single GET against an upstream.

    Instances are passed to ``fetch_cached`` as the execution capability.
    """

    def __init__(
        self,
        timeout_seconds: float = 15.0,
        user_agent: str = "VolcanoStudio/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            timeout_seconds: Bound on connect, read and write
            user_agent: Sent with every request
            transport: Optional httpx transport, mainly for tests

        Raises:
            ValueError: If timeout_seconds is not positive
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self.timeout_seconds = timeout_seconds
        self.headers = {"user-agent": user_agent, "accept": "application/json"}
        self.transport = transport

    async def __call__(self, request: UpstreamRequest) -> UpstreamResponse:
        """Perform the request.

        Returns:
            Status and body of the upstream response, success or not

        Raises:
            UpstreamError: On transport errors and timeouts
        """
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            headers=self.headers,
            transport=self.transport,
        ) as client:
            try:
                response = await client.get(request.url, params=request.params or None)
            except httpx.TimeoutException as e:
                raise UpstreamError(f"Upstream request timed out: {request.url}") from e
            except httpx.HTTPError as e:
                raise UpstreamError(f"Upstream request failed: {e}") from e

        logger.debug("GET %s -> %s", response.request.url, response.status_code)
        return UpstreamResponse(status=response.status_code, body=response.text)
