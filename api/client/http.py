"""
ContentFlow HTTP client.

Thin async wrapper over the REST API for scripts and admin tooling. The auth
session lives on the client as an explicit `AuthState`; any 401 from the
server drops it back to anonymous.
"""

from __future__ import annotations

from typing import Any

import httpx

from . import session

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_TIMEOUT_S = 10.0
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."


# API failures are explicit and carry the server's message.
class ContentFlowAPIError(RuntimeError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise ContentFlowAPIError(0, "API base URL is empty.")
    return base_url.rstrip("/")


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return "An error occurred"


class ContentFlowClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        state: session.AuthState = session.ANONYMOUS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url)
        self.timeout_s = timeout_s
        self.state = state
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if isinstance(self.state, session.Authenticated):
            headers["Authorization"] = f"Bearer {self.state.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ContentFlowAPIError(0, NETWORK_ERROR_MESSAGE) from exc

        if resp.status_code == 401:
            self.state = session.logout(self.state)
        if resp.status_code >= 400:
            raise ContentFlowAPIError(resp.status_code, _error_message(resp))
        return resp.json()

    async def _authenticate(self, path: str, email: str, password: str) -> dict[str, Any]:
        self.state = session.start_login(self.state)
        try:
            data = await self._request("POST", path, json={"email": email, "password": password})
        except ContentFlowAPIError as exc:
            self.state = session.login_failed(self.state, exc.message)
            raise
        self.state = session.login_succeeded(self.state, token=data.get("token", ""), user=data.get("user") or {})
        return data

    async def signup(self, email: str, password: str) -> dict[str, Any]:
        return await self._authenticate("/api/auth/signup", email, password)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        return await self._authenticate("/api/auth/login", email, password)

    def logout(self) -> None:
        self.state = session.logout(self.state)

    async def me(self) -> dict[str, Any]:
        return await self._request("GET", "/api/auth/me")

    async def list_content(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
        keyword: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        if keyword:
            params["keyword"] = keyword
        return await self._request("GET", "/api/content", params=params)

    async def create_content(self, title: str, description: str) -> dict[str, Any]:
        return await self._request("POST", "/api/content", json={"title": title, "description": description})

    async def approve(self, content_id: int) -> dict[str, Any]:
        return await self._request("PUT", f"/api/content/{content_id}/approve")

    async def reject(self, content_id: int) -> dict[str, Any]:
        return await self._request("PUT", f"/api/content/{content_id}/reject")

    async def stats(self) -> dict[str, Any]:
        return await self._request("GET", "/api/content/stats")

    async def recent_activity(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/content/recent")
