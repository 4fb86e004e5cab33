"""Configuration loading with YAML, environment override, and Docker secrets support."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml
from pydantic import ValidationError

from apic_client.config.settings import ApicSettings

logger = structlog.get_logger(__name__)

ENV_PREFIX = "APIC_"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def resolve_file_secrets() -> Dict[str, str]:
    """Resolve Docker secrets pattern (_FILE suffix) from environment.

    Scans environment for variables matching APIC_*_FILE pattern,
    reads the file contents, and returns a dict of the base variable
    names to their values.

    Example:
        APIC_PASSWORD_FILE=/run/secrets/apic_password
        -> Returns {"PASSWORD": "<file contents>"}
    """
    secrets: Dict[str, str] = {}
    suffix = "_FILE"

    for key, filepath in os.environ.items():
        if key.startswith(ENV_PREFIX) and key.endswith(suffix):
            # Extract base name: APIC_PASSWORD_FILE -> PASSWORD
            base_name = key[len(ENV_PREFIX) : -len(suffix)]
            try:
                path = Path(filepath)
                if path.exists():
                    secrets[base_name] = path.read_text().strip()
                else:
                    # Don't fail here - let validation catch a missing password
                    logger.warning(
                        "secret_file_not_found",
                        env_var=key,
                        path=filepath,
                    )
            except PermissionError:
                raise ConfigurationError(
                    f"Cannot read secret file '{filepath}' specified by {key}: permission denied"
                )
            except OSError as e:
                raise ConfigurationError(
                    f"Error reading secret file '{filepath}' specified by {key}: {e}"
                )

    return secrets


def load_yaml_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file if specified.

    Args:
        config_path: Path to YAML config file. If None, checks CONFIG_PATH env var.

    Returns:
        Dict of configuration values from YAML, or empty dict if no file.
    """
    path = config_path or os.environ.get("CONFIG_PATH")

    if not path:
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}\n"
            "Ensure CONFIG_PATH points to a valid YAML file, or remove it to use environment variables only."
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}")
    except PermissionError:
        raise ConfigurationError(f"Cannot read configuration file {path}: permission denied")


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """Format Pydantic validation errors into user-friendly messages."""
    messages: List[str] = []
    for error in errors:
        loc = ".".join(str(part) for part in error.get("loc", []))
        msg = error.get("msg", "Invalid value")
        input_val = error.get("input")

        if "missing" in msg.lower() or "required" in msg.lower():
            hint = f"Set {ENV_PREFIX}{loc.upper()} environment variable or add '{loc}:' to config file."
            messages.append(f"Configuration error: '{loc}' is required. {hint}")
        elif input_val is not None and loc != "password":
            messages.append(f"Configuration error: '{loc}' {msg}, got: {input_val}")
        else:
            messages.append(f"Configuration error: '{loc}' {msg}")

    return messages


def load_config(config_path: Optional[str] = None) -> ApicSettings:
    """Load and validate configuration.

    Configuration is loaded with the following precedence:
    1. Environment variables (highest priority)
    2. Docker secrets (_FILE pattern)
    3. YAML configuration file
    4. Default values (lowest priority)

    The process environment is only read, never modified.

    Args:
        config_path: Optional path to YAML config file (defaults to CONFIG_PATH env).

    Returns:
        Validated ApicSettings instance.

    Raises:
        ConfigurationError: If the configuration file cannot be read or
            validation fails (message lists every problem).
    """
    path = config_path or os.environ.get("CONFIG_PATH")

    # Validate YAML file exists and is readable (gives better errors)
    # The actual loading happens in the pydantic settings source
    _ = load_yaml_config(path)

    secrets = {key.lower(): value for key, value in resolve_file_secrets().items()}

    try:
        return ApicSettings.from_files(config_path=path, file_secrets=secrets)
    except ValidationError as e:
        # Report all errors at once
        raise ConfigurationError("\n".join(format_validation_errors(e.errors()))) from e
