"""Tests for the proxy address resolver and client factory."""

import ssl
import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest

from proxy import ProxyAddr, http_client


def test_proxy_addr_unset_is_unavailable():
    addr = ProxyAddr()

    assert addr() is None
    assert addr(timeout=0.01) is None


def test_proxy_addr_is_set_once():
    addr = ProxyAddr()

    assert addr.set("127.0.0.1:8080") is True
    assert addr.set("127.0.0.1:9090") is False
    assert addr() == "127.0.0.1:8080"


def test_proxy_addr_waits_for_late_value():
    addr = ProxyAddr()
    timer = threading.Timer(0.05, addr.set, args=("127.0.0.1:8080",))
    timer.start()

    try:
        assert addr(timeout=2) == "127.0.0.1:8080"
    finally:
        timer.cancel()


@patch("proxy.httpx.AsyncClient")
def test_http_client_without_proxy(mock_client):
    http_client("", lambda: None)

    mock_client.assert_called_once_with(proxy=None, verify=True)


@patch("proxy.httpx.AsyncClient")
def test_http_client_without_resolver(mock_client):
    http_client("", None)

    mock_client.assert_called_once_with(proxy=None, verify=True)


@patch("proxy.httpx.AsyncClient")
def test_http_client_routes_through_proxy(mock_client):
    resolver = MagicMock(return_value="127.0.0.1:8080")

    http_client("", resolver)

    resolver.assert_called_once_with()
    mock_client.assert_called_once_with(proxy="http://127.0.0.1:8080", verify=True)


@patch("proxy.httpx.AsyncClient")
def test_http_client_keeps_proxy_scheme(mock_client):
    http_client("", lambda: "socks5://127.0.0.1:1080")

    mock_client.assert_called_once_with(proxy="socks5://127.0.0.1:1080", verify=True)


@patch("proxy.httpx.AsyncClient")
@patch("proxy.ssl.create_default_context")
def test_http_client_trusts_given_certificate(mock_context, mock_client):
    http_client("-----BEGIN CERTIFICATE-----", None)

    mock_context.assert_called_once_with(cadata="-----BEGIN CERTIFICATE-----")
    mock_client.assert_called_once_with(proxy=None, verify=mock_context.return_value)


def test_http_client_rejects_malformed_certificate():
    with pytest.raises(ssl.SSLError):
        http_client("not a certificate", None)


async def test_http_client_returns_async_client():
    client = http_client("", None)

    assert isinstance(client, httpx.AsyncClient)
    await client.aclose()
