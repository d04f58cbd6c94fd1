# regions_contract/http_client.py
"""
Thin httpx wrapper for the regions API.

Every request goes to ``{base_uri}{base_path}{path}`` with JSON content
negotiation headers. Nothing is retried: transport failures raise
TransportError, and any HTTP status (including 4xx/5xx) is handed back
to the caller, because the regions service reports validation errors as
HTTP 200 with an error payload and the scenarios decide what counts as
expected.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import httpx

from regions_contract.config import ContractSettings, get_settings
from regions_contract.contract_types import EndpointRequest, ResponseEnvelope, TransportError

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

_SENSITIVE_KEYS = {"authorization", "x-api-key", "api_key", "cookie", "set-cookie", "token"}
_LOG_BODY_LIMIT = 1000

QueryParams = Union[Mapping[str, Any], Sequence[Tuple[str, Any]], None]


def _redact_sensitive(headers: Mapping[str, str]) -> Dict[str, str]:
    return {
        k: "[REDACTED]" if k.lower() in _SENSITIVE_KEYS else v
        for k, v in headers.items()
    }


def _truncate(text: str) -> str:
    if len(text) <= _LOG_BODY_LIMIT:
        return text
    return text[:_LOG_BODY_LIMIT] + "..."


class RegionsClient:
    """
    Synchronous client for ``GET /regions``-style calls.

    A single instance is safe to share between worker threads. Pass
    ``transport`` to swap the network for ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        settings: Optional[ContractSettings] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        log_http: Optional[bool] = None,
    ):
        self.settings = settings or get_settings()
        self.log_http = self.settings.log_http if log_http is None else log_http
        self.base_url = self.settings.base_uri.rstrip("/") + "/" + self.settings.base_path.strip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=JSON_HEADERS,
            timeout=httpx.Timeout(self.settings.timeout_s),
            follow_redirects=True,
            transport=transport,
        )

    # ==================== Lifecycle ====================

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RegionsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ==================== Public API ====================

    def get(self, relative_path: str, query_params: QueryParams = None) -> ResponseEnvelope:
        """Issue one GET and wrap the outcome; never retries."""
        params = list(query_params.items()) if isinstance(query_params, Mapping) else list(query_params or [])
        request = self._client.build_request("GET", relative_path, params=params or None)
        url = str(request.url)

        if self.log_http:
            logger.info(f"→ GET {url} headers={_redact_sensitive(request.headers)}")

        t0 = time.perf_counter()
        try:
            resp = self._client.send(request)
        except httpx.RequestError as e:
            logger.error(f"🔌 GET {url} failed: {e!r}")
            raise TransportError(url, e) from e
        elapsed_ms = int((time.perf_counter() - t0) * 1000)

        envelope = ResponseEnvelope(
            status_code=resp.status_code,
            content_type=resp.headers.get("content-type", ""),
            body=self._parse_body(resp),
            url=url,
            text=resp.text,
            elapsed_ms=elapsed_ms,
        )

        if self.log_http:
            logger.info(
                f"← {resp.status_code} {url} ({elapsed_ms}ms) "
                f"content-type={envelope.content_type!r} body={_truncate(resp.text)}"
            )
        return envelope

    def fetch(self, request: EndpointRequest) -> ResponseEnvelope:
        return self.get(request.path, request.query())

    # ==================== Internals ====================

    @staticmethod
    def _parse_body(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug(f"Response from {resp.request.url} is not JSON")
            return None
