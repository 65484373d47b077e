"""Blocking HTTP client for the chart-computation service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..config import Settings
from ..errors import EndpointError, MissingCredentialError

logger = logging.getLogger(__name__)


class AstrologyApiClient:
    """One POST per call, no retries. Every failure becomes an ``EndpointError``."""

    def __init__(self, settings: Settings) -> None:
        self.base_url = settings.astrology_api_url.rstrip("/")
        self.api_key = settings.astrology_api_key
        self.timeout = settings.astrology_api_timeout

    def require_key(self) -> None:
        if not self.api_key or self.api_key == "PLACEHOLDER_API_KEY":
            raise MissingCredentialError("ASTROLOGY_API_KEY is not configured")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def post(self, endpoint: str, body: Dict[str, Any], timeout: Optional[float] = None) -> Any:
        url = f"{self.base_url}/{endpoint}"
        try:
            r = requests.post(url, json=body, headers=self._headers(), timeout=timeout or self.timeout)
        except requests.RequestException as exc:
            raise EndpointError(endpoint, f"{type(exc).__name__}: {exc}") from exc

        if r.status_code < 200 or r.status_code >= 300:
            raise EndpointError(endpoint, f"HTTP {r.status_code}", r.status_code)

        try:
            data = r.json()
        except ValueError as exc:
            raise EndpointError(endpoint, "response was not valid JSON", r.status_code) from exc

        # The service reports some failures with a 200 and an error statusCode in the body
        if isinstance(data, dict):
            status = data.get("statusCode")
            if isinstance(status, int) and status >= 400:
                raise EndpointError(endpoint, f"statusCode {status} in body", status)

        logger.debug("astrology_api_call_ok", extra={"endpoint": endpoint})
        return data
