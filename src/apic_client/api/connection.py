"""APIC connection: the public query and mutation API.

The ApicConnection wraps one authenticated relationship with one
controller. It is created by an async constructor that logs in eagerly, so
bad credentials or an unreachable controller surface immediately.

Features:
- Single-flight session renewal shared by all concurrent requests
- Proactive renewal shortly before expiry, reactive renewal on rejection
- Typed ManagedObject results
- Best-effort logout on close

Example usage:
    from apic_client.api import ApicConnection, PasswordCredentials
    from apic_client.models import Endpoint

    async with await ApicConnection.create(
        Endpoint.parse("https://apic.example.com"),
        PasswordCredentials(username="admin", password="secret"),
    ) as conn:
        faults = await conn.get_instances("faultInst")
        print(f"Found {len(faults)} faults")
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Union

import httpx
import structlog

from apic_client.models import ChangeRequest, Endpoint, ManagedObject, QuerySettings

from .codec import decode_response, encode_change_request, encode_delete
from .credentials import Credentials, PasswordCredentials
from .executor import RequestExecutor
from .query import build_class_query, build_dn_query
from .session import DEFAULT_REFRESH_MARGIN, SessionManager

if TYPE_CHECKING:
    from apic_client.config import ApicSettings

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT: float = 30.0


class ApicConnection:
    """Connection to an APIC controller.

    Any number of queries may run concurrently on one connection. All
    state (HTTP client, session, in-flight renewal) belongs to the instance.

    Attributes:
        endpoint: Controller base address.
        timeout: Per-request timeout in seconds.

    Example:
        # Eager construction (recommended)
        conn = await ApicConnection.create(endpoint, credentials)
        try:
            tenants = await conn.get_instances("fvTenant")
        finally:
            await conn.close()

        # As async context manager
        async with ApicConnection(endpoint, credentials) as conn:
            tenants = await conn.get_instances("fvTenant")
    """

    def __init__(
        self,
        endpoint: Endpoint,
        credentials: Credentials,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        refresh_margin: float = DEFAULT_REFRESH_MARGIN,
        use_refresh: bool = True,
        challenge_token: bool = False,
        auth_retries: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the connection without contacting the controller.

        Args:
            endpoint: Controller base address.
            credentials: Credential provider used for every login.
            timeout: Per-request timeout in seconds.
            verify_ssl: Verify the controller's TLS certificate.
            refresh_margin: Renew this many seconds before advertised expiry.
            use_refresh: Extend live sessions via aaaRefresh instead of logging in.
            challenge_token: Request and send the APIC-challenge token.
            auth_retries: Retries for unreachable-controller login failures.
            transport: Custom httpx transport (tests use httpx.MockTransport).
            clock: Monotonic clock for session expiry.
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._credentials = credentials
        self._client = httpx.AsyncClient(
            base_url=endpoint.base_url,
            timeout=timeout,
            verify=verify_ssl,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._sessions = SessionManager(
            self._client,
            credentials,
            refresh_margin=refresh_margin,
            use_refresh=use_refresh,
            request_challenge=challenge_token,
            auth_retries=auth_retries,
            clock=clock,
        )
        self._executor = RequestExecutor(self._client, self._sessions)
        self._closed = False

    @classmethod
    async def create(
        cls,
        endpoint: Union[Endpoint, str],
        credentials: Credentials,
        timeout: float = DEFAULT_TIMEOUT,
        **options: Any,
    ) -> ApicConnection:
        """Create a connection and authenticate eagerly.

        Args:
            endpoint: Controller base address, or a URL to parse.
            credentials: Credential provider.
            timeout: Per-request timeout in seconds.
            **options: Further keyword arguments for the constructor.

        Returns:
            An authenticated ApicConnection.

        Raises:
            InvalidCredentialsError: Credentials rejected.
            ControllerUnreachableError: Cannot reach the controller.
            UnexpectedResponseError: Unusable login response.
        """
        if isinstance(endpoint, str):
            endpoint = Endpoint.parse(endpoint)
        conn = cls(endpoint, credentials, timeout=timeout, **options)
        try:
            await conn.connect()
        except BaseException:
            await conn._client.aclose()
            raise
        return conn

    @classmethod
    async def from_settings(
        cls,
        settings: ApicSettings,
        **options: Any,
    ) -> ApicConnection:
        """Create an authenticated connection from ApicSettings."""
        credentials = PasswordCredentials(
            username=settings.username,
            password=settings.password,
        )
        return await cls.create(
            Endpoint.parse(settings.url),
            credentials,
            timeout=settings.timeout,
            verify_ssl=settings.verify_ssl,
            refresh_margin=settings.refresh_margin,
            use_refresh=settings.use_refresh,
            challenge_token=settings.challenge_token,
            auth_retries=settings.auth_retries,
            **options,
        )

    @property
    def sessions(self) -> SessionManager:
        """The connection's session manager."""
        return self._sessions

    @property
    def is_authenticated(self) -> bool:
        """Whether a session is currently cached."""
        return self._sessions.current is not None

    async def connect(self) -> None:
        """Authenticate with the controller.

        Raises:
            AuthError: Login failed.
            RuntimeError: The connection was closed.
        """
        self._ensure_open()
        logger.info("connecting", base_url=self.endpoint.base_url)
        await self._sessions.get_valid_session()
        logger.info("connected", base_url=self.endpoint.base_url)

    async def refresh(self) -> None:
        """Renew the session now, regardless of its remaining lifetime."""
        self._ensure_open()
        await self._sessions.renew()

    async def close(self) -> None:
        """Log out (best-effort) and release the HTTP client.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        await self._sessions.close()
        await self._client.aclose()
        logger.debug("disconnected", base_url=self.endpoint.base_url)

    async def get_instances(
        self,
        class_name: str,
        settings: Optional[QuerySettings] = None,
    ) -> List[ManagedObject]:
        """Return the instances of a class.

        Args:
            class_name: APIC class name, e.g. "faultInst".
            settings: Filter, scope and paging options.

        Returns:
            Matching objects in controller order; empty if none match.

        Raises:
            ValueError: class_name is empty.
            ApicClientError: The request or decoding failed.

        Example:
            >>> faults = await conn.get_instances(
            ...     "faultInst",
            ...     QuerySettings(query_target_filter='eq(faultInst.severity,"critical")'),
            ... )
        """
        self._ensure_open()
        spec = build_class_query(class_name, settings)
        response = await self._executor.execute_spec(spec)
        objects = decode_response(response)
        logger.debug("instances_retrieved", class_name=class_name, count=len(objects))
        return objects

    async def get_subtree(
        self,
        dn: str,
        settings: Optional[QuerySettings] = None,
    ) -> List[ManagedObject]:
        """Return the object at a DN, or parts of its subtree per settings.

        Raises:
            ValueError: dn is empty.
            ApicClientError: The request or decoding failed.
        """
        self._ensure_open()
        spec = build_dn_query(dn, settings)
        response = await self._executor.execute_spec(spec)
        objects = decode_response(response)
        logger.debug("subtree_retrieved", dn=dn, count=len(objects))
        return objects

    async def apply_change(self, change: Union[ChangeRequest, ManagedObject]) -> None:
        """Create or modify objects by posting a tree rooted at a DN.

        Multi-object trees are sent in one request; whether the controller
        applies them atomically is up to the controller.

        Raises:
            ValueError: The root object has no DN.
            ApicClientError: The request failed or the response was malformed.
        """
        self._ensure_open()
        if isinstance(change, ManagedObject):
            change = ChangeRequest(root=change)
        spec = encode_change_request(change)
        response = await self._executor.execute_spec(spec)
        decode_response(response)
        logger.info("change_applied", dn=change.dn, class_name=change.root.class_name)

    async def delete(self, dn: str) -> None:
        """Delete the object at a DN.

        Raises:
            ValueError: dn is empty.
            ApicClientError: The request failed.
        """
        self._ensure_open()
        spec = encode_delete(dn)
        await self._executor.execute_spec(spec)
        logger.info("object_deleted", dn=dn)

    def _ensure_open(self) -> None:
        """Raise if the connection was closed.

        Raises:
            RuntimeError: Connection closed.
        """
        if self._closed:
            raise RuntimeError("Connection is closed. Create a new ApicConnection.")

    async def __aenter__(self) -> ApicConnection:
        """Enter async context manager - authenticate if not already."""
        if not self.is_authenticated:
            await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: Any,
        exc_val: Any,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager - log out and close."""
        await self.close()
