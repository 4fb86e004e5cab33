"""Controller endpoint model."""

from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Endpoint(BaseModel):
    """Base address of an APIC controller.

    Immutable for the lifetime of a connection.
    """

    model_config = ConfigDict(frozen=True)

    scheme: Literal["http", "https"] = Field(default="https", description="URL scheme")
    host: str = Field(..., description="Controller hostname or IP address")
    port: Optional[int] = Field(default=None, ge=1, le=65535, description="TCP port")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Validate host is not empty."""
        if not v or not v.strip():
            raise ValueError("Host cannot be empty")
        return v.strip()

    @classmethod
    def parse(cls, url: str) -> "Endpoint":
        """Build an Endpoint from a URL such as ``https://apic.example.com:8443``.

        A bare hostname is treated as HTTPS. Any path is ignored.

        Raises:
            ValueError: The URL has no host or an unsupported scheme.
        """
        if "://" not in url:
            url = f"https://{url}"
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported URL scheme: {parts.scheme!r}")
        if not parts.hostname:
            raise ValueError(f"URL has no host: {url!r}")
        return cls(scheme=parts.scheme, host=parts.hostname, port=parts.port)

    @property
    def base_url(self) -> str:
        """Base URL without trailing slash."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None:
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"

    def __str__(self) -> str:
        return self.base_url
