"""Request execution with automatic re-authentication on session rejection.

The executor attaches the current session to each request. If the
controller rejects the session anyway (its clock or revocation policy may
disagree with the local estimate), the session is invalidated, renewed once
and the request retried once. A second rejection is surfaced to the caller
rather than looping against a misconfigured controller.

Transport failures and timeouts are never retried here.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

import httpx
import structlog

from .auth import Session
from .codec import parse_error
from .exceptions import (
    AuthRejectedError,
    ErrorResponseError,
    RequestTimeoutError,
    TransportError,
)
from .query import RequestSpec
from .session import SessionManager

logger = structlog.get_logger(__name__)

# Fragment of the APIC error text returned when a session token is no longer accepted
TOKEN_REJECTION_MARKER = "token"


def is_auth_rejection(response: httpx.Response) -> bool:
    """Whether a response means the session token was not accepted.

    The APIC answers 401 for missing sessions and 403 with an error text
    such as "Token was invalid (Error: Token timeout)" for expired or
    revoked ones. Other 403s (e.g. RBAC denials) are ordinary errors.
    """
    if response.status_code == 401:
        return True
    if response.status_code != 403:
        return False
    try:
        _, text = parse_error(response.json())
    except ValueError:
        return False
    return text is not None and TOKEN_REJECTION_MARKER in text.lower()


class RequestExecutor:
    """Sends authenticated requests to the controller."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        sessions: SessionManager,
    ) -> None:
        """Initialize the executor.

        Args:
            client: httpx.AsyncClient bound to the controller base URL and
                configured with the connection's timeout.
            sessions: Session manager supplying tokens.
        """
        self._client = client
        self._sessions = sessions

    async def execute(
        self,
        method: str,
        path: str,
        params: Optional[Iterable[Tuple[str, str]]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request with session handling.

        Args:
            method: HTTP method (GET, POST, DELETE).
            path: Relative, already-escaped path.
            params: Query-string pairs.
            body: JSON body.

        Returns:
            The successful (status < 400) response.

        Raises:
            AuthRejectedError: Rejected again after re-authenticating.
            ErrorResponseError: Any other error status.
            TransportError: Network-level failure.
            RequestTimeoutError: The configured timeout was exceeded.
            AuthError: Obtaining a session failed.
        """
        session = await self._sessions.get_valid_session()
        response = await self._send(method, path, params, body, session)

        if is_auth_rejection(response):
            logger.info(
                "session_rejected",
                message="Session rejected, re-authenticating",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            self._sessions.invalidate_current(session)
            session = await self._sessions.get_valid_session()
            response = await self._send(method, path, params, body, session)

            if is_auth_rejection(response):
                # If we still get rejected after re-auth, it's a real auth failure
                raise AuthRejectedError()

        if response.status_code >= 400:
            code, text = None, None
            try:
                code, text = parse_error(response.json())
            except ValueError:
                pass
            logger.debug(
                "error_response",
                method=method,
                path=path,
                status_code=response.status_code,
                apic_code=code,
            )
            raise ErrorResponseError(response.status_code, code=code, text=text)

        return response

    async def execute_spec(self, spec: RequestSpec) -> httpx.Response:
        """Send a request described by a RequestSpec."""
        return await self.execute(spec.method, spec.path, spec.params, spec.body)

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Iterable[Tuple[str, str]]],
        body: Optional[Dict[str, Any]],
        session: Session,
    ) -> httpx.Response:
        """Make a raw HTTP request without session handling.

        Raises:
            RequestTimeoutError: The request timed out.
            TransportError: Any other network-level failure.
        """
        logger.debug("request", method=method, path=path)
        try:
            return await self._client.request(
                method,
                path,
                params=list(params) if params else None,
                json=body,
                headers=session.as_headers(),
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(message=f"Request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            raise TransportError(message=f"Request failed: {method} {path}: {e}") from e
