"""
HTTP transport.

Moves payload bytes to and from upload services.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional
import time

import aiohttp

from .config import TransferConfig
from .logging import get_logger


@dataclass(frozen=True)
class HttpResponse:
    """
    Result of a GET request.

    Attributes:
        status: HTTP status code
        body: Response body
        content_type: MIME type without parameters, if sent
        headers: Response headers
    """
    status: int
    body: bytes
    content_type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _mime_type(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    mime = header.split(';', 1)[0].strip().lower()
    return mime or None


class HttpTransport:
    """
    Thin aiohttp wrapper shared by the upload and download pipelines.

    Reuses one HTTP session for every request. A session passed in by the
    caller is borrowed and never closed here.

    Responsibilities:
    - PUT payloads to slot write locations
    - GET payloads from shared links
    """

    def __init__(
        self,
        config: Optional[TransferConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize transport.

        Args:
            config: Transfer configuration (SSL, proxy, timeouts, headers)
            session: Optional shared session
        """
        self._config = config or TransferConfig.default()
        self._session = session
        self._owns_session = False
        self._logger = get_logger('securetransfer.http')

    @property
    def _proxy(self) -> Optional[str]:
        return self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(**self._config.get_connector_kwargs()),
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
        self._session = None
        self._owns_session = False

    async def __aenter__(self) -> 'HttpTransport':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def put(
        self,
        url: str,
        data: bytes,
        headers: Optional[Dict[str, str]] = None
    ) -> int:
        """
        Upload bytes with a single PUT.

        Args:
            url: Write location
            data: Exact bytes to send
            headers: Extra request headers

        Returns:
            HTTP status code

        Raises:
            aiohttp.ClientError: If a network error occurs
            asyncio.TimeoutError: If a configured timeout expires
        """
        session = await self._get_session()
        request_headers = {'Content-Length': str(len(data))}
        request_headers.update(headers or {})

        size_kb = len(data) / 1024
        start = time.time()
        self._logger.debug(f"PUT {url} ({size_kb:.1f} KB)")

        async with session.put(url, data=data, headers=request_headers, proxy=self._proxy) as response:
            await response.read()
            elapsed = time.time() - start
            self._logger.debug(f"PUT {url} -> HTTP {response.status} in {elapsed:.2f}s")
            return response.status

    async def get(self, url: str) -> HttpResponse:
        """
        Download a resource.

        Args:
            url: Fetchable (https) URL

        Returns:
            HttpResponse with status and body

        Raises:
            aiohttp.ClientError: If a network error occurs
            asyncio.TimeoutError: If a configured timeout expires
        """
        session = await self._get_session()
        start = time.time()
        self._logger.debug(f"GET {url}")

        async with session.get(url, proxy=self._proxy) as response:
            body = await response.read()
            elapsed = time.time() - start
            self._logger.debug(
                f"GET {url} -> HTTP {response.status}, {len(body)} bytes in {elapsed:.2f}s"
            )
            return HttpResponse(
                status=response.status,
                body=body,
                content_type=_mime_type(response.headers.get('Content-Type')),
                headers=dict(response.headers),
            )
