# ============================================================================
# PLATFORM HTTP CLIENT
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Async HTTP client shared by all modules
# PURPOSE: Issue platform API calls and map failures onto the error taxonomy
# CREATED: 07 OCT 2026
# ============================================================================
"""
Platform HTTP Client

Async httpx client used by every platform module. A fresh AsyncClient is
opened per request, so a module instance holds no sockets between calls.

Failure mapping:
    connect errors, timeouts          -> PlatformError(TRANSIENT)
    HTTP 408, 425, 429, 5xx           -> PlatformError(TRANSIENT)
    HTTP 400-499 (other)              -> PlatformError(PERMANENT)
    2xx with an unparseable JSON body -> PlatformError(PERMANENT)

Tests inject an httpx.MockTransport; nothing here talks to the network
when a transport is supplied.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from core.config import HttpDefaults
from core.contracts import FailureKind
from core.errors import PlatformError

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({408, 425, 429})


def classify_status(status_code: int) -> FailureKind:
    """Failure kind for a non-2xx HTTP status."""
    if status_code in TRANSIENT_STATUS_CODES or status_code >= 500:
        return FailureKind.TRANSIENT
    return FailureKind.PERMANENT


def _error_detail(resp: httpx.Response) -> str:
    """Best-effort error message from a platform response body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] or resp.reason_phrase

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        for key in ("message", "error_message", "detail", "error", "errors"):
            if body.get(key):
                return str(body[key])[:500]
    return str(body)[:500]


class PlatformHttpClient:
    """Async HTTP client bound to one platform's base URL and auth headers."""

    def __init__(
        self,
        platform_id: str,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        defaults: Optional[HttpDefaults] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        verify: bool = True,
    ):
        self.platform_id = platform_id
        self._base_url = base_url.rstrip("/")
        self._defaults = defaults or HttpDefaults()
        self._headers = {"User-Agent": self._defaults.user_agent, **(headers or {})}
        self._transport = transport
        self._verify = verify
        self._timeout = httpx.Timeout(
            connect=self._defaults.connect_timeout,
            read=self._defaults.read_timeout,
            write=self._defaults.write_timeout,
            pool=self._defaults.pool_timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make a request and return the decoded JSON body.

        Returns an empty dict for empty 2xx bodies (e.g. 204 No Content).

        Raises:
            PlatformError: transport failure or non-2xx response
        """
        url = f"{self._base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
                verify=self._verify,
            ) as client:
                resp = await client.request(
                    method, url, json=json, data=data, params=params, headers=headers,
                )
        except httpx.TimeoutException as e:
            logger.warning(f"{self.platform_id} timeout: {method} {path}: {e}")
            raise PlatformError.transient(self.platform_id, f"Request timed out: {method} {path}")
        except httpx.TransportError as e:
            logger.warning(f"{self.platform_id} unreachable: {method} {path}: {e}")
            raise PlatformError.transient(self.platform_id, f"Cannot reach platform: {e}")
        except httpx.RequestError as e:
            logger.error(f"{self.platform_id} request error: {method} {path}: {e}")
            raise PlatformError.permanent(self.platform_id, f"Request failed: {e}")

        if resp.is_success:
            if not resp.content:
                return {}
            try:
                return resp.json()
            except ValueError:
                raise PlatformError.permanent(
                    self.platform_id,
                    f"Invalid JSON in response to {method} {path}",
                    status_code=resp.status_code,
                )

        kind = classify_status(resp.status_code)
        detail = _error_detail(resp)
        log = logger.warning if kind == FailureKind.TRANSIENT else logger.error
        log(f"{self.platform_id} {method} {path} -> {resp.status_code}: {detail}")
        raise PlatformError(
            self.platform_id,
            f"HTTP {resp.status_code}: {detail}",
            kind=kind,
            status_code=resp.status_code,
        )

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)


__all__ = ["PlatformHttpClient", "classify_status", "TRANSIENT_STATUS_CODES"]
