"""Configuration management for the APIC client."""

from apic_client.config.loader import ConfigurationError, load_config
from apic_client.config.settings import ApicSettings

__all__ = [
    "ApicSettings",
    "ConfigurationError",
    "load_config",
]
