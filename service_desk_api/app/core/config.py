"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  The
remote record store is described by a ``RecordStoreEndpoint`` built
from these settings and handed to the store's constructor, so tests
can point the service at a fake endpoint without touching globals.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RecordStoreEndpoint:
    """Where and how to reach the remote record store.

    Attributes:
        url: Deployed script URL.  All actions go to this single URL.
        timeout: Request timeout in seconds.
    """

    url: str
    timeout: float = 30.0


def _split_lines(raw: str) -> List[str]:
    return [line.strip() for line in raw.split("|") if line.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Service Desk API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE") or None

    # Locale used to order text columns; empty means "from the environment".
    collation_locale: str = os.getenv("COLLATION_LOCALE", "")

    # URL of the deployed record store script.  Must be overridden in a
    # real deployment; the default only makes the app importable.
    record_store_url: str = os.getenv("RECORD_STORE_URL", "http://localhost:8080/exec")
    record_store_timeout: float = float(os.getenv("RECORD_STORE_TIMEOUT", "30"))

    # Slip capture geometry: logical width in pixels and the
    # oversampling factor applied on top of it.
    slip_capture_width: int = int(os.getenv("SLIP_CAPTURE_WIDTH", "800"))
    slip_capture_scale: int = int(os.getenv("SLIP_CAPTURE_SCALE", "2"))

    # Shop details printed in the slip header.
    shop_name: str = os.getenv("SHOP_NAME", "Roshan Bags")
    shop_department: str = os.getenv("SHOP_DEPARTMENT", "Service Department")
    shop_address: List[str] = field(
        default_factory=lambda: _split_lines(
            os.getenv(
                "SHOP_ADDRESS",
                "33, SOUTH USMAN ROAD, NEAR BUS TERMINUS, T.NAGAR|CHENNAI-600017",
            )
        )
    )
    shop_phone: str = os.getenv("SHOP_PHONE", "9345735945")
    shop_email: str = os.getenv("SHOP_EMAIL", "sales@roshanbags.com")
    shop_gst: str = os.getenv("SHOP_GST", "33AAIFR7046M1ZT")

    def record_store_endpoint(self) -> RecordStoreEndpoint:
        """Build the endpoint descriptor injected into ``RecordStore``."""
        return RecordStoreEndpoint(url=self.record_store_url, timeout=self.record_store_timeout)


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
