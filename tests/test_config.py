"""Tests for configuration loading."""

import pytest

from config import (
    DEFAULT_GEO_LOOKUP_URL,
    DEFAULT_TRACKING_ID,
    Config,
    default_device_id,
    load_config,
)

ENV_VARS = [
    "DEVICE_ID",
    "ANALYTICS_ENABLED",
    "IP_WAIT_SECONDS",
    "PROXY_ADDR",
    "GEO_LOOKUP_URL",
    "CA_CERT_PATH",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_default_device_id_is_stable():
    assert default_device_id() == default_device_id()
    assert default_device_id() != ""


def test_defaults():
    config = Config()

    assert config.client.device_id == default_device_id()
    assert config.analytics.enabled is True
    assert config.analytics.tracking_id == DEFAULT_TRACKING_ID
    assert config.analytics.ip_wait_seconds is None
    assert config.proxy_addr is None
    assert config.geo_lookup_url == DEFAULT_GEO_LOOKUP_URL
    assert config.ca_cert == ""


def test_load_config_without_env_uses_defaults():
    assert load_config() == Config()


def test_load_config_from_env(monkeypatch, tmp_path):
    cert_path = tmp_path / "ca.pem"
    cert_path.write_text("-----BEGIN CERTIFICATE-----")
    monkeypatch.setenv("DEVICE_ID", "device-abc")
    monkeypatch.setenv("IP_WAIT_SECONDS", "30")
    monkeypatch.setenv("PROXY_ADDR", "127.0.0.1:8080")
    monkeypatch.setenv("GEO_LOOKUP_URL", "https://geo.example.com/lookup")
    monkeypatch.setenv("CA_CERT_PATH", str(cert_path))

    config = load_config()

    assert config.client.device_id == "device-abc"
    assert config.analytics.ip_wait_seconds == 30.0
    assert config.proxy_addr == "127.0.0.1:8080"
    assert config.geo_lookup_url == "https://geo.example.com/lookup"
    assert config.ca_cert == "-----BEGIN CERTIFICATE-----"


@pytest.mark.parametrize("value, enabled", [
    ("false", False),
    ("0", False),
    ("No", False),
    ("true", True),
    ("1", True),
])
def test_load_config_analytics_enabled(monkeypatch, value, enabled):
    monkeypatch.setenv("ANALYTICS_ENABLED", value)

    assert load_config().analytics.enabled is enabled
