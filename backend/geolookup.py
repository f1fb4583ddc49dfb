import asyncio
from typing import Optional
from tenacity import AsyncRetrying, RetryCallState, wait_exponential
from config import DEFAULT_GEO_LOOKUP_URL
from logger import logger
from proxy import ProxyAddrFn, client_addr, http_client

RETRY_INTERVAL = 2.0
MAX_RETRY_INTERVAL = 60.0

def _log_retry(retry_state: RetryCallState) -> None:
    logger.debug(
        f"Geolookup failed, retrying in {retry_state.next_action.sleep}s: "
        f"{str(retry_state.outcome.exception())}"
    )

class GeoLookup:
    """Looks up this client's public IP in the background and hands it to waiters."""

    def __init__(
        self,
        url: str = DEFAULT_GEO_LOOKUP_URL,
        proxy_addr_fn: Optional[ProxyAddrFn] = client_addr,
        retry_interval: float = RETRY_INTERVAL,
        ca_cert: str = ""
    ):
        self.url = url
        self.proxy_addr_fn = proxy_addr_fn
        self.retry_interval = retry_interval
        self.ca_cert = ca_cert
        self.closed = False
        self._ip: Optional[str] = None
        self._done = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is not None:
            return
        if self._ip is None:
            self._done.clear()
        self.closed = False
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        async for attempt in AsyncRetrying(
            wait=wait_exponential(multiplier=self.retry_interval, max=MAX_RETRY_INTERVAL),
            before_sleep=_log_retry,
        ):
            with attempt:
                ip = await self.lookup()

        self._ip = ip
        self._done.set()
        logger.info(f"Public IP resolved: {ip}")

    async def lookup(self) -> str:
        async with http_client(self.ca_cert, self.proxy_addr_fn) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            ip = response.json().get("ip")

        if not ip:
            raise ValueError(f"No ip in geolookup response from {self.url}")
        return ip

    async def get_ip(self, max_wait: Optional[float] = None) -> str:
        """
        Wait for the public IP.

        Args:
            max_wait: Seconds to wait, None to wait until resolved or closed

        Returns:
            The IP address, or "" if it was not resolved in time. Check
            `closed` to tell a close apart from a timeout.
        """
        try:
            await asyncio.wait_for(self._done.wait(), timeout=max_wait)
        except asyncio.TimeoutError:
            return ""
        return self._ip or ""

    async def close(self) -> None:
        self.closed = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._done.set()

geolookup = GeoLookup()
