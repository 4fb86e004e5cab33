"""Shared fixtures: an in-memory APIC controller and a controllable clock."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx
import pytest

from apic_client.api import PasswordCredentials
from apic_client.models import Endpoint


def envelope(*entries: Dict[str, Any], total_count: Optional[int] = None) -> Dict[str, Any]:
    """Wrap class-tagged entries in an imdata envelope."""
    payload: Dict[str, Any] = {"imdata": list(entries)}
    payload["totalCount"] = str(len(entries) if total_count is None else total_count)
    return payload


def error_envelope(code: str, text: str) -> Dict[str, Any]:
    """Build an APIC error envelope."""
    return {
        "totalCount": "1",
        "imdata": [{"error": {"attributes": {"code": code, "text": text}}}],
    }


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeApic:
    """Minimal APIC controller behind an httpx.MockTransport.

    Issues tokens tok1, tok2, ... on each login, rejects data requests
    carrying unknown or revoked tokens with the controller's 403
    "Token timeout" answer, and records everything it receives.
    """

    def __init__(self) -> None:
        self.lifetime = "600"
        self.url_token: Optional[str] = None
        self.login_delay = 0.0
        self.login_count = 0
        self.refresh_count = 0
        self.logout_count = 0
        self.login_bodies: List[Dict[str, Any]] = []
        self.login_params: List[Dict[str, str]] = []
        self.login_failures: List[Any] = []
        self.refresh_status = 200
        self.valid_tokens: Set[str] = set()
        self.reject_all = False
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def route(self, method: str, path: str, payload: Any, status_code: int = 200) -> None:
        """Answer ``method path`` (decoded path) with a JSON payload."""
        self.routes[(method, path)] = (status_code, payload)

    def revoke(self, token: str) -> None:
        self.valid_tokens.discard(token)

    @staticmethod
    def token_of(request: httpx.Request) -> Optional[str]:
        cookie = request.headers.get("cookie", "")
        for part in cookie.split(";"):
            name, _, value = part.strip().partition("=")
            if name == "APIC-cookie":
                return value
        return None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/aaaLogin.json":
            return await self._login(request)
        if path == "/api/aaaRefresh.json":
            return self._refresh(request)
        if path == "/api/aaaLogout.json":
            self.logout_count += 1
            return httpx.Response(200, json={"imdata": []})

        self.requests.append(request)
        if self.reject_all or self.token_of(request) not in self.valid_tokens:
            return httpx.Response(
                403, json=error_envelope("403", "Token was invalid (Error: Token timeout)")
            )
        status_code, payload = self.routes.get(
            (request.method, path), (200, {"totalCount": "0", "imdata": []})
        )
        return httpx.Response(status_code, json=payload)

    async def _login(self, request: httpx.Request) -> httpx.Response:
        self.login_count += 1
        self.login_bodies.append(json.loads(request.content))
        self.login_params.append(dict(request.url.params))
        if self.login_delay:
            await asyncio.sleep(self.login_delay)
        if self.login_failures:
            failure = self.login_failures.pop(0)
            if isinstance(failure, Exception):
                raise failure
            return failure
        token = f"tok{self.login_count}"
        self.valid_tokens.add(token)
        return httpx.Response(200, json=self._aaa_login(token))

    def _refresh(self, request: httpx.Request) -> httpx.Response:
        self.refresh_count += 1
        token = self.token_of(request)
        if self.refresh_status != 200 or token not in self.valid_tokens:
            return httpx.Response(
                self.refresh_status if self.refresh_status != 200 else 403,
                json=error_envelope("403", "Token was invalid (Error: Token timeout)"),
            )
        return httpx.Response(200, json=self._aaa_login(token))

    def _aaa_login(self, token: str) -> Dict[str, Any]:
        attributes = {"token": token, "refreshTimeoutSeconds": self.lifetime}
        if self.url_token:
            attributes["urlToken"] = self.url_token
        return {"totalCount": "1", "imdata": [{"aaaLogin": {"attributes": attributes}}]}


@pytest.fixture
def fake_apic():
    """An in-memory controller."""
    return FakeApic()


@pytest.fixture
def clock():
    """A clock under test control."""
    return FakeClock()


@pytest.fixture
def credentials():
    """Password credentials for the fake controller."""
    return PasswordCredentials(username="admin", password="secret")


@pytest.fixture
def endpoint():
    """Endpoint of the fake controller."""
    return Endpoint.parse("https://apic.test")
