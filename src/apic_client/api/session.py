"""Session management with single-flight renewal and retry logic.

This module provides the SessionManager, which owns a connection's cached
APIC session and renews it proactively (shortly before expiry) or
reactively (after the controller rejects it), plus a tenacity retry policy
for transient failures while authenticating.

Renewal is single-flight: when many concurrent requests find the session
missing or stale, exactly one login (or refresh) goes to the controller and
every waiter receives its outcome.

Example usage:
    manager = SessionManager(client, credentials, refresh_margin=30)
    session = await manager.get_valid_session()
    headers = session.as_headers()
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from . import auth
from .auth import Session
from .credentials import Credentials
from .exceptions import ControllerUnreachableError, InvalidCredentialsError, UnexpectedResponseError

logger = structlog.get_logger(__name__)

DEFAULT_REFRESH_MARGIN: float = 30.0


def create_retry_policy(
    max_retries: int = 0,
    min_wait: float = 1,
    max_wait: float = 30,
    log_level: int = logging.WARNING,
) -> AsyncRetrying:
    """Create a tenacity retry policy for authentication attempts.

    Only ControllerUnreachableError is retried; rejected credentials are
    never retried, since repeated bad logins can lock the account.

    Args:
        max_retries: Retries after the first attempt (0 disables retrying).
        min_wait: Minimum wait time in seconds between retries.
        max_wait: Maximum wait time in seconds between retries.
        log_level: Log level for retry attempt messages.

    Returns:
        A tenacity AsyncRetrying instance; call it with the coroutine function.

    Backoff sequence (with min=1, max=30):
        Attempt 1: immediate
        Attempt 2: wait 1-2 seconds
        Attempt 3: wait 2-4 seconds
        ...
        Capped at 30 seconds max
    """
    # Get a stdlib logger for tenacity's before_sleep_log
    stdlib_logger = logging.getLogger(__name__)

    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(ControllerUnreachableError),
        before_sleep=before_sleep_log(stdlib_logger, log_level),
        reraise=True,
    )


class SessionManager:
    """Owns and renews the authenticated session of one connection.

    All state is per instance; several managers (one per connection) can
    coexist in a process without interfering.

    Attributes:
        refresh_margin: Seconds before advertised expiry at which the
            session is renewed proactively, capped at half of each
            session's lifetime so short-lived tokens are still reused.
        use_refresh: Try aaaRefresh before a full login while the current
            session has not expired yet.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: Credentials,
        refresh_margin: float = DEFAULT_REFRESH_MARGIN,
        use_refresh: bool = True,
        request_challenge: bool = False,
        auth_retries: int = 0,
        retry_min_wait: float = 1,
        retry_max_wait: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self.refresh_margin = refresh_margin
        self.use_refresh = use_refresh
        self._request_challenge = request_challenge
        self._auth_retries = auth_retries
        self._retry_min_wait = retry_min_wait
        self._retry_max_wait = retry_max_wait
        self._clock = clock

        self._session: Optional[Session] = None
        self._renewal: Optional["asyncio.Task[Session]"] = None

    @property
    def current(self) -> Optional[Session]:
        """The cached session, without any validity check."""
        return self._session

    async def authenticate(self) -> Session:
        """Log in, retrying transient unreachability per the retry policy.

        Does not install the result; use get_valid_session() for that.

        Raises:
            InvalidCredentialsError: Credentials rejected (never retried).
            ControllerUnreachableError: Network failure after all retries.
            UnexpectedResponseError: Unusable login response.
        """
        retrying = create_retry_policy(
            max_retries=self._auth_retries,
            min_wait=self._retry_min_wait,
            max_wait=self._retry_max_wait,
        )
        return await retrying(
            auth.authenticate,
            self._client,
            self._credentials,
            request_challenge=self._request_challenge,
            clock=self._clock,
        )

    async def get_valid_session(self) -> Session:
        """Return a session that is not (locally known to be) stale.

        Returns the cached session unless it is absent or within
        refresh_margin of expiry (capped at half the session lifetime); otherwise joins (or starts) the single
        in-flight renewal.

        Raises:
            AuthError: Renewal failed. Every concurrent waiter sees the
                same failure; the next call starts a new attempt.
        """
        session = self._session
        if session is not None and not session.needs_renewal(self._clock(), self._margin_for(session)):
            return session
        return await self.renew()

    async def renew(self) -> Session:
        """Renew the session now, joining an in-flight renewal if there is one.

        A caller cancelled while waiting does not cancel the renewal itself;
        it still completes and installs its result for everyone else.
        """
        return await asyncio.shield(self._start_renewal())

    def invalidate_current(self, session: Optional[Session] = None) -> None:
        """Drop the cached session so the next get_valid_session() renews.

        Args:
            session: The session a rejected request used. If given, the
                cache is only cleared while it still holds that session, so
                a late rejection does not discard a newer one.
        """
        if session is not None and self._session is not session:
            logger.debug("session_invalidation_skipped", reason="already_renewed")
            return
        if self._session is not None:
            logger.info("session_invalidated")
        self._session = None

    async def logout(self) -> None:
        """Log out the cached session (best-effort) and forget it."""
        session, self._session = self._session, None
        if session is not None:
            await auth.logout(self._client, session, self._credentials.username)

    async def close(self) -> None:
        """Cancel any in-flight renewal and log out."""
        task = self._renewal
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        self._renewal = None
        await self.logout()

    def _margin_for(self, session: Session) -> float:
        """Renewal margin for one session, at most half its lifetime."""
        return min(self.refresh_margin, session.valid_for / 2)

    def _start_renewal(self) -> "asyncio.Task[Session]":
        """Return the in-flight renewal task, creating it if needed.

        Runs without suspending, so checking and installing the slot is
        atomic with respect to other coroutines.
        """
        task = self._renewal
        if task is None or task.done():
            current = self._session
            if current is None:
                reason = "absent"
            elif current.is_expired(self._clock()):
                reason = "expired"
            else:
                reason = "nearing_expiry"
            logger.debug("session_renewal_started", reason=reason)

            task = asyncio.ensure_future(self._perform_renewal(current))
            task.add_done_callback(self._renewal_done)
            self._renewal = task
        return task

    def _renewal_done(self, task: "asyncio.Task[Session]") -> None:
        """Clear the in-flight slot and consume the task's outcome."""
        if self._renewal is task:
            self._renewal = None
        if task.cancelled():
            logger.debug("session_renewal_cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.warning(
                "session_renewal_failed",
                error_type=type(error).__name__,
                error=str(error).split("\n", 1)[0],
            )

    async def _perform_renewal(self, current: Optional[Session]) -> Session:
        """Refresh the current session if possible, otherwise log in again."""
        if current is not None and self.use_refresh and not current.is_expired(self._clock()):
            try:
                session = await auth.refresh(self._client, current, clock=self._clock)
            except (InvalidCredentialsError, UnexpectedResponseError) as e:
                logger.info("session_refresh_rejected", error=e.message)
            else:
                self._session = session
                return session

        session = await self.authenticate()
        self._session = session
        return session
