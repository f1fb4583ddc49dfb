"""
Session analytics for Google Analytics (Measurement Protocol v1).

Brackets the application's runtime with a session start and a session end
hit. Every hit is best effort: failures go to the error reporter and are
never raised to the caller.
"""
import asyncio
import threading
from typing import Awaitable, Callable, Optional
from urllib.parse import urlencode
import httpx
import errors
from config import DEFAULT_TRACKING_ID, Config
from errors import AnalyticsError, Reporter
from geolookup import GeoLookup, geolookup
from logger import logger
from proxy import ProxyAddrFn, client_addr, http_client

TRACKING_ID = DEFAULT_TRACKING_ID
API_ENDPOINT = "https://ssl.google-analytics.com/collect"

# Keeps session starter tasks referenced until they finish
_background_tasks = set()

def session_vals(ip: str, version: str, client_id: str, sc: str, tracking_id: str = TRACKING_ID) -> str:
    vals = {
        "v": "1",
        "cid": client_id,
        "tid": tracking_id,
        # Override the user's IP so we get accurate geo data
        "uip": ip,
        # Google agrees not to store the IP
        "aip": "1",
        "dp": "localhost",
        "t": "pageview",
        # Application version
        "cd1": version,
        # Forces recording of the session duration, either "start" or "end"
        "sc": sc,
    }
    return urlencode(sorted(vals.items()))

def dump_request(request: httpx.Request) -> str:
    """Render an outgoing request the way it goes on the wire."""
    target = request.url.raw_path.decode("ascii")
    lines = [f"{request.method} {target} HTTP/1.1"]
    lines.extend(f"{name.decode('ascii')}: {value.decode('latin-1')}" for name, value in request.headers.raw)
    return "\r\n".join(lines) + "\r\n\r\n" + request.content.decode("utf-8")

async def track_session(
    args: str,
    proxy_addr_fn: Optional[ProxyAddrFn],
    report: Reporter = errors.report,
    ca_cert: str = ""
) -> None:
    try:
        body = args.encode("utf-8")
        request = httpx.Request(
            "POST",
            API_ENDPOINT,
            content=body,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Content-Length": str(len(body)),
            },
        )
    except Exception as e:
        report(e)
        return

    if logger.debug_enabled():
        try:
            logger.debug(f"Full analytics request: {dump_request(request)}")
        except Exception as e:
            report(errors.wrap(e, op="dump-request"))

    try:
        client = http_client(ca_cert, proxy_addr_fn)
    except Exception as e:
        report(e)
        return

    async with client:
        try:
            response = await client.send(request)
        except Exception as e:
            report(e)
            return

        logger.debug(f"Successfully sent request to GA: {response.status_code} {response.reason_phrase}")
        try:
            await response.aclose()
        except Exception as e:
            logger.debug(f"Unable to close response body: {str(e)}")

async def start_session(
    ip: str,
    version: str,
    proxy_addr_fn: Optional[ProxyAddrFn],
    client_id: str,
    report: Reporter = errors.report,
    tracking_id: str = TRACKING_ID,
    ca_cert: str = ""
) -> None:
    args = session_vals(ip, version, client_id, "start", tracking_id)
    await track_session(args, proxy_addr_fn, report, ca_cert)

async def end_session(
    ip: str,
    version: str,
    proxy_addr_fn: Optional[ProxyAddrFn],
    client_id: str,
    report: Reporter = errors.report,
    tracking_id: str = TRACKING_ID,
    ca_cert: str = ""
) -> None:
    args = session_vals(ip, version, client_id, "end", tracking_id)
    await track_session(args, proxy_addr_fn, report, ca_cert)

class ResolvedIP:
    """Write-once cell shared by the session starter and the stop hook."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ip: Optional[str] = None

    def store(self, ip: str) -> bool:
        with self._lock:
            if self._ip is not None:
                return False
            self._ip = ip
            return True

    def load(self) -> Optional[str]:
        with self._lock:
            return self._ip

def start(
    config: Config,
    version: str,
    geo: GeoLookup = geolookup,
    proxy_addr_fn: Optional[ProxyAddrFn] = client_addr,
    report: Reporter = errors.report
) -> Callable[[], Awaitable[None]]:
    """
    Start an analytics session once the public IP is known.

    Must be called from a running event loop. The returned coroutine function
    ends the session and should be awaited at shutdown.
    """
    client_id = config.client.device_id
    tracking_id = config.analytics.tracking_id
    max_wait = config.analytics.ip_wait_seconds
    ca_cert = config.ca_cert
    addr = ResolvedIP()

    async def run():
        ip = await geo.get_ip(max_wait)
        if not ip:
            if geo.closed:
                logger.debug("Geolookup closed before the IP resolved, no analytics session")
                return
            wait_seconds = "unbounded" if max_wait is None else str(int(max_wait))
            report(AnalyticsError("No IP found", op="geolookup", wait_seconds=wait_seconds))
            return
        addr.store(ip)
        logger.debug(f"Starting analytics session with ip {ip}")
        await start_session(ip, version, proxy_addr_fn, client_id, report, tracking_id, ca_cert)

    task = asyncio.create_task(run())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    async def stop():
        ip = addr.load()
        if ip is not None:
            logger.debug(f"Ending analytics session with ip {ip}")
            await end_session(ip, version, proxy_addr_fn, client_id, report, tracking_id, ca_cert)

    return stop
