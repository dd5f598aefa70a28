"""
Authenticated HTTP channel to the qBittorrent WebUI API.

qBittorrent keeps the login in an ``SID`` cookie and answers 403 once that
cookie is missing or expired. ``QBittorrentSession.execute`` hides this from
callers: an operation that fails with an auth error triggers one login and
one retry, after which any failure is passed through unchanged.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, TypeVar

import aiohttp

from ..logging_config import get_logger
from .models import QBittorrentConfig

logger = get_logger("qbitgram.qbittorrent")

T = TypeVar("T")


class QBittorrentError(Exception):
    """Base exception for qBittorrent API errors"""
    pass


class QBittorrentAuthError(QBittorrentError):
    """Session missing/expired or credentials rejected"""
    pass


class QBittorrentNetworkError(QBittorrentError):
    """Transport-level failure (connection refused, timeout, ...)"""
    pass


class QBittorrentProtocolError(QBittorrentError):
    """Unexpected status code or response shape"""
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class QBittorrentNotFoundError(QBittorrentError):
    """Torrent not found"""
    pass


@dataclass(frozen=True)
class RetryPolicy:
    """Finite retry policy for daemon operations.

    An attempt that fails with one of ``retry_on`` is followed by a fresh
    login and another attempt, up to ``max_attempts`` attempts in total.
    """
    max_attempts: int = 2
    retry_on: Tuple[Type[Exception], ...] = (QBittorrentAuthError,)

    def should_retry(self, attempt: int, error: Exception) -> bool:
        return attempt < self.max_attempts and isinstance(error, self.retry_on)


class QBittorrentSession:
    """
    Owns the aiohttp session and cookie jar shared by every daemon call.
    """

    def __init__(self, config: QBittorrentConfig, retry_policy: Optional[RetryPolicy] = None):
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                # qBittorrent is usually addressed by IP, which the default jar refuses
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                headers={
                    # Required by the WebUI CSRF protection
                    "Referer": self.config.host,
                    "User-Agent": "qbitgram/1.0",
                },
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
        return self._session

    async def close(self):
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> str:
        """Perform one API call and return the response body as text."""
        session = await self._get_session()
        url = f"{self.config.api_url}{endpoint}"

        try:
            logger.debug(f"{method} {url}")
            async with session.request(method, url, data=data, params=params) as response:
                body = await response.text()
                if response.status == 200:
                    return body
                elif response.status in (401, 403):
                    raise QBittorrentAuthError(f"Forbidden: {endpoint}")
                elif response.status == 404:
                    raise QBittorrentNotFoundError(f"Not found: {endpoint}")
                else:
                    raise QBittorrentProtocolError(
                        f"API error {response.status} on {endpoint}: {body[:200]}",
                        status=response.status,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise QBittorrentNetworkError(f"Request to {endpoint} failed: {e!r}") from e

    async def request_json(self, method: str, endpoint: str, **kwargs) -> Any:
        body = await self.request(method, endpoint, **kwargs)
        try:
            return json.loads(body)
        except ValueError as e:
            raise QBittorrentProtocolError(f"Invalid JSON from {endpoint}: {body[:200]}") from e

    async def login(self):
        """Submit credentials; the SID cookie lands in the shared jar."""
        logger.info(f"Logging in to qBittorrent at {self.config.host} as {self.config.username}")
        body = await self.request(
            "POST",
            "auth/login",
            data={"username": self.config.username, "password": self.config.password},
        )
        # Bad credentials still come back as HTTP 200
        if body.strip() == "Fails.":
            raise QBittorrentAuthError("Invalid username or password")

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation``, logging in again and retrying per the retry policy."""
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except QBittorrentError as e:
                if not self.retry_policy.should_retry(attempt, e):
                    raise
                logger.info(f"Session rejected ({e}), re-authenticating")
                await self.login()
