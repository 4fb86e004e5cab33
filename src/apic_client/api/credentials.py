"""Authentication material for APIC login.

Credential providers only know how to describe themselves to the login
endpoint; sending the request and handling the answer is the session
manager's job. New schemes plug in by implementing the Credentials protocol.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


@runtime_checkable
class Credentials(Protocol):
    """Protocol for APIC credential providers."""

    @property
    def username(self) -> str:
        """Account name, used for log context at DEBUG level only."""
        ...

    def login_payload(self) -> Dict[str, Any]:
        """Return the JSON body for ``/api/aaaLogin.json``.

        The payload contains secrets and must never be logged.
        """
        ...


class PasswordCredentials(BaseModel):
    """Username and password authentication.

    The password is held as a SecretStr, so it is masked in ``repr()``,
    ``str()`` and any structured log that includes the object.
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(..., description="APIC username (apic#domain\\user for remote users)")
    password: SecretStr = Field(..., description="APIC password")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username is not empty."""
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()

    def login_payload(self) -> Dict[str, Any]:
        """Return the aaaUser login body."""
        return {
            "aaaUser": {
                "attributes": {
                    "name": self.username,
                    "pwd": self.password.get_secret_value(),
                }
            }
        }
