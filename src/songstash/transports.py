"""Download transports and per-provider transport selection.

Most providers are fetched with a plain HTTP GET carrying a browser-like
identity. Some providers reject that client and are fetched by an external
process instead (curl by default), whose non-zero exit status is a failure.
"""

import logging
from collections.abc import Mapping

import aiohttp
import anyio
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .plugins.base import TransportBase
from .utils.exceptions import FetchFailed, raise_with_context
from .utils.settings import TransportSettings
from .utils.utils import create_aiohttp_session

logger = logging.getLogger(__name__)


class HttpTransport(TransportBase):
    """Standard HTTP GET transport with a bounded request timeout."""

    def __init__(self, settings: TransportSettings) -> None:
        super().__init__(settings)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_aiohttp_session(
                timeout=self.settings.timeout,
                headers={"User-Agent": self.settings.user_agent},
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientConnectionError, TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _fetch_with_retry(self, url: str) -> bytes:
        logger.debug("Starting download attempt for: %s", url)
        async with self._get_session().get(url) as response:
            response.raise_for_status()
            return await response.read()

    async def fetch(self, url: str) -> bytes:
        """Downloads a URL with aiohttp, retrying connection failures.

        HTTP error statuses are not retried.

        Args:
            url: The resolved download URL.

        Returns:
            The response body.

        Raises:
            FetchFailed: If the request fails after all retries.
        """
        try:
            return await self._fetch_with_retry(url)
        except aiohttp.ClientResponseError as e:
            raise_with_context(FetchFailed(url, f"HTTP {e.status} {e.message}"), e)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise_with_context(FetchFailed(url, repr(e)), e)


class CurlTransport(TransportBase):
    """External process transport.

    Runs the configured command with the URL appended and returns its
    captured stdout. No timeout is applied.
    """

    async def fetch(self, url: str) -> bytes:
        """Downloads a URL by running the configured command.

        Args:
            url: The resolved download URL.

        Returns:
            The process stdout.

        Raises:
            FetchFailed: If the process cannot start or exits non-zero.
        """
        command = [*self.settings.curl_command, url]
        logger.debug("Running %s", command[0])
        try:
            result = await anyio.run_process(command, check=False)
        except OSError as e:
            raise_with_context(FetchFailed(url, f"cannot run {command[0]}: {e}"), e)

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", "replace").strip()
            raise FetchFailed(
                url, stderr or f"{command[0]} exited with status {result.returncode}"
            )
        return result.stdout


class TransportRegistry:
    """Selects the download transport for a provider.

    Providers without an override use the default transport.
    """

    def __init__(
        self,
        default: TransportBase,
        overrides: Mapping[str, TransportBase] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            default: Transport used for providers without an override.
            overrides: Provider tag to transport mapping.
        """
        self._default = default
        self._overrides = dict(overrides or {})

    def for_provider(self, source: str) -> TransportBase:
        """Returns the transport to use for a provider tag."""
        return self._overrides.get(source, self._default)

    async def close(self) -> None:
        """Closes every distinct transport once."""
        seen: set[int] = set()
        for transport in (self._default, *self._overrides.values()):
            if id(transport) in seen:
                continue
            seen.add(id(transport))
            await transport.close()
