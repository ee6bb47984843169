"""Base API adapter interfaces for external issue-tracker / storage providers.

A thin, testable abstraction that:
 - Pulls timeouts and request pacing from the environment
 - Uses structured logging (`get_logger`)
 - Normalizes error handling via the `RelayError` taxonomy

Concrete adapters implement `_build_request` + `_normalize` only.
Runtime HTTP callable is injectable for deterministic tests.
"""
from __future__ import annotations

import os
import time
from abc import ABC, abstractmethod
from typing import Any, Protocol

import requests

from app_logging import get_logger
from config import env_float
from exceptions import RateLimited, RelayError, UpstreamFailure, UpstreamTimeout

# Query params may repeat a key (``custom_items[]``), so a list of pairs is accepted.
Params = dict[str, Any] | list[tuple[str, Any]]


class HTTPResponse(Protocol):
    status_code: int
    text: str

    def json(self) -> Any:
        ...


class HTTPClient(Protocol):
    def __call__(self, url: str, params: Params | None = None, headers: dict[str, str] | None = None, timeout: float | None = None) -> HTTPResponse:  # noqa: D401,E501
        ...


class APIAdapter(ABC):
    """Abstract base adapter.

    Subclasses implement provider-specific request construction and normalization.
    The public `.fetch()` method provides unified logging + exception discipline.
    Exactly one outbound call is made per `.fetch()`; retry policy belongs to the caller.
    """

    name: str = "base"
    base_url: str = ""
    rate_limit_per_sec: float | None = None  # basic sleep guard

    def __init__(self, http: HTTPClient | None = None, *, timeout: float | None = None):
        self._http = http or self._default_http
        # Configurable from env: RELAY_API_TIMEOUT, RELAY_<NAME>_TIMEOUT
        self._timeout = (
            timeout
            if timeout is not None
            else env_float(f"RELAY_{self.name.upper()}_TIMEOUT", "RELAY_API_TIMEOUT", default=30.0)
        )
        # Rate limit override: RELAY_<NAME>_RPS or RELAY_DEFAULT_RPS
        override_rps = os.getenv(f"RELAY_{self.name.upper()}_RPS") or os.getenv("RELAY_DEFAULT_RPS")
        if override_rps:
            try:
                self.rate_limit_per_sec = float(override_rps)
            except ValueError:
                pass
        self._log = get_logger(f"dashboard_relay.adapters.{self.name}")
        self._last_call_ts: float | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    # ----------------- Public API -----------------
    def fetch(self, **kwargs) -> dict[str, Any]:  # noqa: D401
        """Fetch provider payload; return normalized dict.

        Raises:
            RateLimited: upstream answered 429.
            UpstreamTimeout: the call exceeded its timeout.
            UpstreamFailure: on network / status / format issues.
        """
        self._respect_rate_limit()
        url, params, headers = self._build_request(**kwargs)
        self._log.debug("request", extra={"url": url, "params": params})
        response = self._send(url, params, headers)
        self._check_status(response)
        try:
            raw = response.json()
        except ValueError as e:
            raise UpstreamFailure(self.name, f"malformed payload: {e}") from e
        normalized = self._normalize(raw, request_kwargs=kwargs)
        self._log.debug("fetched", extra={"rows": len(normalized.get("data", [])), "status": "ok"})
        return normalized

    # ----------------- Overridables -----------------
    @abstractmethod
    def _build_request(self, **kwargs) -> tuple[str, Params | None, dict[str, str] | None]:
        """Return (url, params, headers)."""

    @abstractmethod
    def _normalize(self, raw: Any, *, request_kwargs: dict[str, Any]) -> dict[str, Any]:
        """Normalize raw provider payload -> canonical structure.

        Expected canonical dict keys:
            provider: str
            data: list[dict]
        """

    # ----------------- Helpers -----------------
    def _respect_rate_limit(self) -> None:
        if not self.rate_limit_per_sec:
            return
        now = time.time()
        if self._last_call_ts is None:
            self._last_call_ts = now
            return
        min_interval = 1.0 / max(self.rate_limit_per_sec, 1e-9)
        elapsed = now - self._last_call_ts
        if elapsed < min_interval:
            time.sleep(min_interval - elapsed)
        self._last_call_ts = time.time()

    def _send(self, url: str, params: Params | None, headers: dict[str, str] | None) -> HTTPResponse:
        try:
            return self._http(url, params=params, headers=headers, timeout=self._timeout)
        except RelayError:
            raise
        except requests.Timeout as e:
            self._log.warning("upstream_timeout", extra={"timeout": self._timeout})
            raise UpstreamTimeout(self.name, f"no response within {self._timeout}s") from e
        except requests.RequestException as e:
            self._log.warning("upstream_error", extra={"error": type(e).__name__})
            raise UpstreamFailure(self.name, f"request failed: {e}") from e

    def _check_status(self, response: HTTPResponse) -> None:
        status = response.status_code
        if status == 429:
            raise RateLimited(self.name, "rate limited")
        if not 200 <= status < 300:
            raise UpstreamFailure(self.name, f"HTTP {status}: {error_text(response)}")

    # Default HTTP client using requests
    def _default_http(self, url: str, params: Params | None = None, headers: dict[str, str] | None = None, timeout: float | None = None):  # noqa: D401,E501
        return requests.get(url, params=params, headers=headers, timeout=timeout or self._timeout)


def error_text(response: HTTPResponse, limit: int = 200) -> str:
    """Best-effort diagnostic text from an error response body."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("err", "message", "value", "error"):
            if payload.get(key):
                return str(payload[key])[:limit]
    text = (getattr(response, "text", "") or "").strip()
    return text[:limit] or "no error detail"


__all__ = ["APIAdapter", "HTTPClient", "HTTPResponse", "error_text"]
