"""Custom exceptions for APIC client operations.

All exceptions inherit from ApicClientError for consistent error handling.
The three intermediate classes tell callers which layer failed:

- AuthError: the session could not be established or renewed
- RequestError: a data request failed in transport or was refused
- DecodeError: the controller answered with something that is not an object envelope
"""

from typing import Optional


class ApicClientError(Exception):
    """Base exception for all APIC client errors.

    Attributes:
        message: Human-readable error message.
        hint: Optional troubleshooting hint.
    """

    def __init__(
        self,
        message: str,
        hint: Optional[str] = None,
    ) -> None:
        self.message = message
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional hint."""
        if self.hint:
            return f"{self.message}\n\nHint: {self.hint}"
        return self.message


# ---------------------------------------------------------------------------
# Session layer
# ---------------------------------------------------------------------------


class AuthError(ApicClientError):
    """Authentication with the controller failed."""


class InvalidCredentialsError(AuthError):
    """The controller rejected the supplied credentials.

    This typically occurs when:
    - Incorrect username or password
    - Account is locked or disabled
    - The login domain prefix (apic#domain\\user) is wrong

    Never retried automatically, to avoid locking the account.
    """

    def __init__(
        self,
        message: str = "Invalid credentials",
        hint: Optional[str] = None,
    ) -> None:
        if hint is None:
            hint = (
                "Check the username and password. Remote users need the "
                "'apic#<login-domain>\\<user>' form."
            )
        super().__init__(message=message, hint=hint)


class ControllerUnreachableError(AuthError):
    """Cannot reach the controller to authenticate.

    This typically occurs when:
    - Incorrect hostname/IP address or port
    - Network connectivity issues or firewall
    - The login request timed out
    """

    def __init__(
        self,
        message: str = "Cannot connect to APIC",
        hint: Optional[str] = None,
    ) -> None:
        if hint is None:
            hint = "Is the APIC reachable from this host? Check the URL and network connectivity."
        super().__init__(message=message, hint=hint)


class UnexpectedResponseError(AuthError):
    """The login endpoint answered, but not with a usable session token."""

    def __init__(
        self,
        message: str = "Unexpected response from APIC login endpoint",
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message=message, hint=hint)


# ---------------------------------------------------------------------------
# Request layer
# ---------------------------------------------------------------------------


class RequestError(ApicClientError):
    """A data request to the controller failed."""


class TransportError(RequestError):
    """Network-level failure (connection refused, DNS, TLS, reset)."""


class RequestTimeoutError(RequestError):
    """The request exceeded the connection's configured timeout."""


class AuthRejectedError(RequestError):
    """The controller rejected the session token again after re-authenticating."""

    def __init__(
        self,
        message: str = "Session rejected by APIC after re-authentication",
        hint: Optional[str] = None,
    ) -> None:
        if hint is None:
            hint = "The account may lack access to this object, or the controller clock may be off."
        super().__init__(message=message, hint=hint)


class ErrorResponseError(RequestError):
    """The controller answered with an error status.

    Attributes:
        status_code: HTTP status code.
        code: APIC error code from the response body, if any.
        text: APIC error text from the response body, if any.
    """

    def __init__(
        self,
        status_code: int,
        code: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.text = text
        message = f"APIC returned HTTP {status_code}"
        if text:
            message = f"{message}: {text}"
        if code:
            message = f"{message} (code {code})"
        super().__init__(message=message)


# ---------------------------------------------------------------------------
# Codec layer
# ---------------------------------------------------------------------------


class DecodeError(ApicClientError):
    """A controller response could not be decoded."""


class MalformedEnvelopeError(DecodeError):
    """The response is not a well-formed ``imdata`` object envelope.

    Never skipped silently: a partial result could be mistaken for
    "no matching objects".
    """
