"""Pydantic settings models for APIC client configuration."""

from __future__ import annotations

import os
from typing import Any, Dict, Literal, Optional, Tuple, Type
from urllib.parse import urlsplit

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads values from a YAML file.

    The YAML file path is given explicitly, or else taken from the
    CONFIG_PATH environment variable.
    """

    def __init__(
        self,
        settings_cls: Type[BaseSettings],
        config_path: Optional[str] = None,
    ) -> None:
        super().__init__(settings_cls)
        self.config_path = config_path

    def get_field_value(
        self, field: Any, field_name: str
    ) -> Tuple[Any, str, bool]:
        """Get field value from YAML config."""
        yaml_config = self._load_yaml_config()
        field_value = yaml_config.get(field_name)
        return field_value, field_name, False

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load YAML configuration file."""
        config_path = self.config_path or os.environ.get("CONFIG_PATH")
        if not config_path:
            return {}

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except (FileNotFoundError, yaml.YAMLError, PermissionError):
            # Errors will be handled by loader.py
            return {}

    def __call__(self) -> Dict[str, Any]:
        """Return the YAML config values."""
        return self._load_yaml_config()


class ApicSettings(BaseSettings):
    """APIC client configuration settings.

    Configuration is loaded in the following precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (APIC_ prefix)
    3. Docker secrets (_FILE pattern, applied via env by the loader)
    4. YAML configuration file (via CONFIG_PATH)
    5. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="APIC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required settings
    url: str = Field(
        ...,
        description="APIC base URL, e.g. https://apic.example.com",
    )
    username: str = Field(
        ...,
        description="APIC username (apic#domain\\user for remote users)",
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="APIC password",
    )

    # Connection settings
    verify_ssl: bool = Field(
        default=True,
        description="Verify SSL certificates (set to false for self-signed certs)",
    )
    timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
        gt=0,
    )

    # Session settings
    auth_retries: int = Field(
        default=0,
        description="Retries when the controller is unreachable during login",
        ge=0,
        le=10,
    )
    refresh_margin: float = Field(
        default=30.0,
        description="Renew the session this many seconds before it expires",
        ge=0,
    )
    use_refresh: bool = Field(
        default=True,
        description="Extend live sessions via aaaRefresh instead of a new login",
    )
    challenge_token: bool = Field(
        default=False,
        description="Request and send the APIC-challenge token",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format: json (production) or text (development)",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to set precedence.

        Order (first = highest priority):
        1. init_settings (constructor arguments)
        2. env_settings (environment variables with APIC_ prefix)
        3. dotenv_settings (.env file)
        4. yaml_settings (CONFIG_PATH YAML file)
        5. file_secret_settings (not used, handled by loader)
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    @classmethod
    def from_files(
        cls,
        config_path: Optional[str] = None,
        file_secrets: Optional[Dict[str, str]] = None,
    ) -> "ApicSettings":
        """Build settings from an explicit YAML file and resolved secret files.

        Order (first = highest priority):
        1. env_settings (environment variables with APIC_ prefix)
        2. file_secrets (values read from APIC_*_FILE paths)
        3. dotenv_settings (.env file)
        4. yaml_settings (config_path)

        Nothing is written to os.environ.
        """
        secrets = dict(file_secrets or {})

        class _FileBackedSettings(cls):
            @classmethod
            def settings_customise_sources(
                cls,
                settings_cls: Type[BaseSettings],
                init_settings: PydanticBaseSettingsSource,
                env_settings: PydanticBaseSettingsSource,
                dotenv_settings: PydanticBaseSettingsSource,
                file_secret_settings: PydanticBaseSettingsSource,
            ) -> Tuple[PydanticBaseSettingsSource, ...]:
                return (
                    init_settings,
                    env_settings,
                    InitSettingsSource(settings_cls, init_kwargs=secrets),
                    dotenv_settings,
                    YamlConfigSettingsSource(settings_cls, config_path=config_path),
                )

        return _FileBackedSettings()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized == "WARN":
            normalized = "WARNING"
        if normalized not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: DEBUG, INFO, WARNING, ERROR"
            )
        return normalized

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the URL has a host and an http(s) scheme."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("URL cannot be empty")
        if "://" not in v:
            v = f"https://{v}"
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https"):
            raise ValueError(f"URL scheme must be http or https, got '{parts.scheme}'")
        if not parts.hostname:
            raise ValueError("URL must include a host")
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username is not empty."""
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()
