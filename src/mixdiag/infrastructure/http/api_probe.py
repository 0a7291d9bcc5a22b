"""One-shot HTTP probes against the local API server."""
from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field, computed_field

from ..logging.structured_logging import info, warning


class ProbeError(Exception):
    """Transport-level failure (connection refused, timeout, TLS...)."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class ProbeResult(BaseModel):
    method: str
    url: str
    status_code: int
    reason: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class MediaProbeResult(BaseModel):
    url: str
    status_code: int
    content_type: Optional[str] = None
    content_length: Optional[int] = None

    @computed_field
    @property
    def accessible(self) -> bool:
        return self.status_code == 200


def _failed_url(e: httpx.RequestError, fallback: str) -> str:
    try:
        return str(e.request.url)
    except RuntimeError:  # request not attached
        return fallback


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiProbe:
    def __init__(
        self,
        base_url: str,
        *,
        verify_tls: bool = False,
        timeout: float = 10.0,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            verify=verify_tls,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "ApiProbe":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def request(self, path: str, method: str = "GET", json: Any = None) -> ProbeResult:
        method = method.upper()
        started = time.perf_counter()
        try:
            r = await self.client.request(method, path, json=json, headers=self._auth_headers())
        except httpx.RequestError as e:
            url = _failed_url(e, self.base_url + path)
            warning("probe_failed", method=method, url=url, error=type(e).__name__)
            raise ProbeError(f"{type(e).__name__} while requesting {url}: {e}", url=url) from e
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        info("probe_request", method=method, url=str(r.request.url), status=r.status_code, elapsed_ms=elapsed_ms)
        return ProbeResult(
            method=method,
            url=str(r.request.url),
            status_code=r.status_code,
            reason=r.reason_phrase,
            headers=dict(r.headers),
            body=_decode_body(r),
            elapsed_ms=elapsed_ms,
        )

    async def login(self, email: str, password: str, path: str = "/api/auth/login") -> str:
        result = await self.request(path, method="POST", json={"email": email, "password": password})
        if not result.ok:
            raise ProbeError(f"Login failed with HTTP {result.status_code}", url=result.url)
        body = result.body if isinstance(result.body, dict) else {}
        token = body.get("token") or body.get("accessToken")
        if not token:
            raise ProbeError("Login response carried no token", url=result.url)
        self.token = str(token)
        return self.token

    async def check_media(self, url: str) -> MediaProbeResult:
        """Fetch headers only; the body is never read."""
        try:
            async with self.client.stream("GET", url, headers=self._auth_headers()) as r:
                length = r.headers.get("content-length")
                result = MediaProbeResult(
                    url=str(r.request.url),
                    status_code=r.status_code,
                    content_type=r.headers.get("content-type"),
                    content_length=int(length) if length and length.isdigit() else None,
                )
        except httpx.RequestError as e:
            failed = _failed_url(e, url)
            warning("probe_failed", method="GET", url=failed, error=type(e).__name__)
            raise ProbeError(f"{type(e).__name__} while requesting {failed}: {e}", url=failed) from e
        info("probe_media", url=result.url, status=result.status_code, accessible=result.accessible)
        return result


__all__ = ['ApiProbe', 'ProbeError', 'ProbeResult', 'MediaProbeResult']
