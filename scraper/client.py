"""
Async HTTP client for the remote data API.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from scraper.config import ApiSettings, get_api_settings
from scraper.errors import ApiRequestError
from scraper.logging_utils import log_event

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


class ApiClient:
    """
    Thin JSON client issuing one GET per call.

    Error responses are returned as decoded bodies so callers can inspect the
    `status` the API reports (for example 402 when the request quota is used
    up). Only transport failures and non-JSON bodies raise.
    """

    def __init__(
        self,
        *,
        settings: ApiSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_api_settings()
        headers = {"Accept": "application/json"}
        if self._settings.api_key:
            headers[API_KEY_HEADER] = self._settings.api_key
        self._client = client or httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            follow_redirects=True,
        )
        self._headers = headers

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_api(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self._settings.base_url.rstrip('/')}/{path.lstrip('/')}"
        query = {key: value for key, value in (params or {}).items() if value is not None}

        try:
            response = await self._client.get(url, params=query, headers=self._headers)
        except httpx.HTTPError as exc:
            log_event(
                logger,
                logging.ERROR,
                "api_request_failed",
                path=path,
                error=str(exc),
            )
            raise ApiRequestError(f"Request to {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            log_event(
                logger,
                logging.ERROR,
                "api_response_invalid",
                path=path,
                status=response.status_code,
            )
            raise ApiRequestError(f"Response from {path} was not valid JSON.") from exc

        if not isinstance(payload, dict):
            raise ApiRequestError(f"Response from {path} was not a JSON object.")
        if response.is_error:
            if payload.get("status") is None:
                payload["status"] = response.status_code
            log_event(
                logger,
                logging.WARNING,
                "api_error_response",
                path=path,
                status=response.status_code,
                error=payload.get("error"),
            )
        return payload
