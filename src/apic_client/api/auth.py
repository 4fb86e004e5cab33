"""Login, refresh and logout calls against the APIC aaa endpoints.

This module handles:
- Authentication with a credential provider (aaaLogin)
- Extending an existing session (aaaRefresh)
- Logout for session cleanup (aaaLogout, best-effort)

The functions are stateless; SessionManager decides when to call them.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
import structlog

from .codec import parse_error
from .credentials import Credentials
from .exceptions import (
    ControllerUnreachableError,
    InvalidCredentialsError,
    UnexpectedResponseError,
)

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/api/aaaLogin.json"
REFRESH_PATH = "/api/aaaRefresh.json"
LOGOUT_PATH = "/api/aaaLogout.json"

# APIC tokens are valid for 10 minutes unless the controller says otherwise
DEFAULT_SESSION_LIFETIME: float = 600.0

COOKIE_NAME = "APIC-cookie"
CHALLENGE_HEADER = "APIC-challenge"


@dataclass(frozen=True)
class Session:
    """A cached APIC session.

    The controller is authoritative; this is the client's estimate of when
    the token stops working. Even an unexpired session may be rejected.

    Attributes:
        token: Value of the APIC-cookie.
        obtained_at: Clock reading (monotonic seconds) when the token was issued.
        valid_for: Advertised lifetime in seconds.
        challenge: Optional urlToken, echoed as the APIC-challenge header.
    """

    token: str
    obtained_at: float
    valid_for: float
    challenge: Optional[str] = None

    @property
    def expires_at(self) -> float:
        """Clock reading at which the token expires."""
        return self.obtained_at + self.valid_for

    def is_expired(self, now: float) -> bool:
        """Whether the advertised lifetime has passed."""
        return now >= self.expires_at

    def needs_renewal(self, now: float, margin: float = 0.0) -> bool:
        """Whether the session is expired or within ``margin`` seconds of expiry."""
        return now >= self.expires_at - margin

    def as_headers(self) -> Dict[str, str]:
        """Return the headers that authenticate a request with this session."""
        headers = {"Cookie": f"{COOKIE_NAME}={self.token}"}
        if self.challenge:
            headers[CHALLENGE_HEADER] = self.challenge
        return headers

    def __repr__(self) -> str:
        return (
            f"Session(token='***', obtained_at={self.obtained_at!r}, "
            f"valid_for={self.valid_for!r}, challenge={'***' if self.challenge else None})"
        )


async def _post(
    client: httpx.AsyncClient,
    path: str,
    operation: str,
    **kwargs: Any,
) -> httpx.Response:
    """POST to an aaa endpoint, mapping transport failures to ControllerUnreachableError."""
    try:
        response = await client.post(path, **kwargs)
    except httpx.TimeoutException as e:
        raise ControllerUnreachableError(
            message=f"Timed out during {operation}: {e}",
        ) from e
    except httpx.RequestError as e:
        raise ControllerUnreachableError(
            message=f"Connection failed during {operation}: {e}",
        ) from e
    finally:
        # The token travels in an explicit header; keep the shared jar empty
        client.cookies.clear()
    return response


def _login_attributes(response: httpx.Response, operation: str) -> Dict[str, Any]:
    """Extract ``imdata[0].aaaLogin.attributes`` from a successful response."""
    try:
        payload = response.json()
    except ValueError as e:
        raise UnexpectedResponseError(
            message=f"{operation.capitalize()} response is not valid JSON",
        ) from e

    try:
        attributes = payload["imdata"][0]["aaaLogin"]["attributes"]
    except (KeyError, IndexError, TypeError) as e:
        raise UnexpectedResponseError(
            message=f"{operation.capitalize()} response is missing aaaLogin attributes",
        ) from e
    if not isinstance(attributes, dict):
        raise UnexpectedResponseError(
            message=f"{operation.capitalize()} response has non-mapping aaaLogin attributes",
        )
    return attributes


def _lifetime(attributes: Dict[str, Any]) -> float:
    """Read the advertised session lifetime in seconds."""
    raw = attributes.get("refreshTimeoutSeconds")
    if raw in (None, ""):
        return DEFAULT_SESSION_LIFETIME
    try:
        lifetime = float(raw)
    except (TypeError, ValueError) as e:
        raise UnexpectedResponseError(
            message=f"Invalid refreshTimeoutSeconds in response: {raw!r}",
        ) from e
    if lifetime <= 0:
        raise UnexpectedResponseError(
            message=f"Invalid refreshTimeoutSeconds in response: {raw!r}",
        )
    return lifetime


def _raise_for_status(response: httpx.Response, operation: str) -> None:
    """Map a non-200 aaa response to the matching AuthError."""
    if response.status_code == 200:
        return

    code: Optional[str] = None
    text: Optional[str] = None
    try:
        code, text = parse_error(response.json())
    except ValueError:
        pass

    if response.status_code in (401, 403):
        message = f"{operation.capitalize()} rejected by APIC"
        if text:
            message = f"{message}: {text}"
        if operation == "login":
            raise InvalidCredentialsError(message=message)
        raise InvalidCredentialsError(
            message=message,
            hint="The session can no longer be refreshed; log in again.",
        )

    message = f"{operation.capitalize()} failed with status code {response.status_code}"
    if text:
        message = f"{message}: {text}"
    raise UnexpectedResponseError(
        message=message,
        hint="Check controller logs for more details." if code is None else f"APIC error code {code}.",
    )


async def authenticate(
    client: httpx.AsyncClient,
    credentials: Credentials,
    request_challenge: bool = False,
    clock: Callable[[], float] = time.monotonic,
) -> Session:
    """Log in and return a new session.

    Args:
        client: httpx.AsyncClient bound to the controller base URL.
        credentials: Credential provider for the login body.
        request_challenge: Ask the controller for a urlToken challenge.
        clock: Monotonic clock used to timestamp the session.

    Returns:
        Freshly issued Session.

    Raises:
        InvalidCredentialsError: The controller refused the credentials (401/403).
        ControllerUnreachableError: Network failure or timeout.
        UnexpectedResponseError: Any other status or an unusable body.

    Note:
        The password is never logged. Username is logged at DEBUG only.
    """
    logger.debug("authenticating", username=credentials.username)

    params = {"gui-token-request": "yes"} if request_challenge else None
    response = await _post(
        client,
        LOGIN_PATH,
        "login",
        json=credentials.login_payload(),
        params=params,
    )
    _raise_for_status(response, "login")

    attributes = _login_attributes(response, "login")
    token = attributes.get("token")
    if not isinstance(token, str) or not token:
        raise UnexpectedResponseError(message="Login response is missing the session token")
    challenge = attributes.get("urlToken") or None

    session = Session(
        token=token,
        obtained_at=clock(),
        valid_for=_lifetime(attributes),
        challenge=challenge if isinstance(challenge, str) else None,
    )
    logger.info("authentication_successful", valid_for=session.valid_for)
    return session


async def refresh(
    client: httpx.AsyncClient,
    session: Session,
    clock: Callable[[], float] = time.monotonic,
) -> Session:
    """Extend a session via aaaRefresh.

    The controller may answer with a new token and challenge; empty values
    keep the current ones.

    Raises:
        InvalidCredentialsError: The controller refused the session (401/403).
        ControllerUnreachableError: Network failure or timeout.
        UnexpectedResponseError: Any other status or an unusable body.
    """
    logger.debug("refreshing_session")

    try:
        response = await client.get(REFRESH_PATH, headers=session.as_headers())
    except httpx.TimeoutException as e:
        raise ControllerUnreachableError(message=f"Timed out during refresh: {e}") from e
    except httpx.RequestError as e:
        raise ControllerUnreachableError(message=f"Connection failed during refresh: {e}") from e
    finally:
        client.cookies.clear()
    _raise_for_status(response, "refresh")

    attributes = _login_attributes(response, "refresh")
    token = attributes.get("token") or session.token
    challenge = attributes.get("urlToken") or session.challenge

    refreshed = Session(
        token=token,
        obtained_at=clock(),
        valid_for=_lifetime(attributes),
        challenge=challenge,
    )
    logger.info("session_refreshed", valid_for=refreshed.valid_for)
    return refreshed


async def logout(
    client: httpx.AsyncClient,
    session: Session,
    username: str,
) -> None:
    """Log out from the controller (best-effort).

    This is a best-effort operation - errors are logged but not raised.
    The session will eventually expire on its own if logout fails.
    """
    try:
        response = await client.post(
            LOGOUT_PATH,
            json={"aaaUser": {"attributes": {"name": username}}},
            headers=session.as_headers(),
        )
        if response.status_code == 200:
            logger.debug("logout_successful")
        else:
            logger.debug("logout_status", status_code=response.status_code)
    except Exception as e:
        # Best-effort - don't raise on logout failure
        logger.debug("logout_failed", error=str(e))
    finally:
        client.cookies.clear()
