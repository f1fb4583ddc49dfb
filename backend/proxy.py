"""
Proxy address resolution and proxy-aware HTTP clients.

The local proxy address may only become known after startup, so callers hand
around a resolver and it is consulted when a client is built.
"""
import ssl
import threading
from typing import Callable, Optional
import httpx
from logger import logger

ProxyAddrFn = Callable[[], Optional[str]]

class ProxyAddr:
    """Set-once address that readers can wait on."""

    def __init__(self):
        self._lock = threading.Lock()
        self._set = threading.Event()
        self._addr: Optional[str] = None

    def set(self, addr: str) -> bool:
        with self._lock:
            if self._set.is_set():
                return False
            self._addr = addr
            self._set.set()
        logger.debug(f"Proxy address set to {addr}")
        return True

    def __call__(self, timeout: float = 0.0) -> Optional[str]:
        if not self._set.wait(timeout):
            return None
        return self._addr

client_addr = ProxyAddr()

def _proxy_url(addr: str) -> str:
    if "://" in addr:
        return addr
    return f"http://{addr}"

def http_client(ca_cert: str, proxy_addr_fn: Optional[ProxyAddrFn]) -> httpx.AsyncClient:
    verify = True
    if ca_cert:
        verify = ssl.create_default_context(cadata=ca_cert)

    proxy = None
    if proxy_addr_fn is not None:
        addr = proxy_addr_fn()
        if addr:
            proxy = _proxy_url(addr)
            logger.debug(f"Routing requests through proxy {proxy}")

    return httpx.AsyncClient(proxy=proxy, verify=verify)
