"""
APIC Client - Async client for the Cisco ACI (APIC) REST management API.

This package queries, creates, modifies and deletes managed objects on an
APIC controller, keeping one authenticated session valid across any number
of concurrent requests.

Features:
- Single-flight session renewal (one login, however many callers wait)
- Proactive refresh before expiry and re-authentication on rejection
- Typed ManagedObject records that keep unknown attributes
- Configuration via YAML with environment variable overrides
- Structured logging (JSON for production, text for development)
"""

from apic_client.api import ApicConnection, PasswordCredentials
from apic_client.models import ChangeRequest, Endpoint, ManagedObject, QuerySettings

__version__ = "0.1.0"
__all__ = [
    "ApicConnection",
    "ChangeRequest",
    "Endpoint",
    "ManagedObject",
    "PasswordCredentials",
    "QuerySettings",
    "__version__",
]
