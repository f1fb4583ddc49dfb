import base64
import os
import uuid
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field

VERSION = "0.1.0"

DEFAULT_TRACKING_ID = "UA-21815217-12"
DEFAULT_GEO_LOOKUP_URL = "https://api.ipify.org?format=json"

def default_device_id() -> str:
    """Stable per-installation identifier derived from the hardware node id."""
    return base64.urlsafe_b64encode(uuid.getnode().to_bytes(6, "big")).decode("utf-8")

class ClientConfig(BaseModel):
    device_id: str = Field(default_factory=default_device_id)

class AnalyticsConfig(BaseModel):
    enabled: bool = True
    tracking_id: str = DEFAULT_TRACKING_ID
    # None waits until the IP is known or the process exits
    ip_wait_seconds: Optional[float] = None

class Config(BaseModel):
    client: ClientConfig = Field(default_factory=ClientConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    proxy_addr: Optional[str] = None
    geo_lookup_url: str = DEFAULT_GEO_LOOKUP_URL
    ca_cert: str = ""

def load_config() -> Config:
    client = ClientConfig()
    if os.getenv("DEVICE_ID"):
        client = ClientConfig(device_id=os.environ["DEVICE_ID"])

    analytics = AnalyticsConfig(
        enabled=os.getenv("ANALYTICS_ENABLED", "true").lower() not in ("0", "false", "no"),
        ip_wait_seconds=os.getenv("IP_WAIT_SECONDS") or None,
    )

    ca_cert = ""
    ca_cert_path = os.getenv("CA_CERT_PATH")
    if ca_cert_path:
        ca_cert = Path(ca_cert_path).read_text()

    return Config(
        client=client,
        analytics=analytics,
        proxy_addr=os.getenv("PROXY_ADDR") or None,
        geo_lookup_url=os.getenv("GEO_LOOKUP_URL", DEFAULT_GEO_LOOKUP_URL),
        ca_cert=ca_cert,
    )
