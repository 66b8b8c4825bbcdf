"""Layout source backed by an HTTP endpoint."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..const import DEFAULT_HEADERS, LAYOUT_ENDPOINT
from ..exceptions import LayoutError, NetworkError, ValidationError
from ..models import ParkingLot
from .base import BaseLayoutSource
from .config import build_parking_lot, parse_document, serialize_document

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)


class HttpLayoutSource(BaseLayoutSource):
    """Fetch the layout document with GET and store it with PUT."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        api_uri: str | None = None,
        layout_path: str = LAYOUT_ENDPOINT,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
    ) -> None:
        if session is None:
            raise ValidationError("Session is required.")
        self._session = session
        self._base_url = self._normalize_base_url(base_url)
        self._api_uri = self._normalize_api_uri(api_uri)
        self._layout_path = layout_path
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)

    async def load_layout(self) -> ParkingLot:
        _LOGGER.debug("Fetching layout from %s", self._base_url)
        text = await self._request_text("GET", self._layout_path)
        lot = build_parking_lot(parse_document(text))
        _LOGGER.debug("Fetched layout %s with %d floors", lot.id, len(lot.floors))
        return lot

    async def save_layout(self, lot: ParkingLot) -> None:
        _LOGGER.debug("Storing layout %s at %s", lot.id, self._base_url)
        await self._request_text(
            "PUT",
            self._layout_path,
            data=serialize_document(lot),
            headers={**DEFAULT_HEADERS, "Content-Type": "application/json"},
        )

    def _build_url(self, path: str) -> str:
        if not isinstance(path, str) or not path:
            raise ValidationError("Path must be a non-empty string.")
        if path.startswith("http://") or path.startswith("https://"):
            raise ValidationError("Use relative paths when building layout requests.")
        normalized_path = path if path.startswith("/") else f"/{path}"
        return f"{self._base_url}{self._api_uri}{normalized_path}"

    async def _request_text(self, method: str, path: str, **kwargs: Any) -> str:
        url = self._build_url(path)
        kwargs.setdefault("headers", DEFAULT_HEADERS)
        retries = self._retry_count if method.upper() == "GET" else 0
        attempts = retries + 1
        for attempt in range(attempts):
            try:
                async with self._session.request(
                    method,
                    url,
                    timeout=self._timeout,
                    **kwargs,
                ) as response:
                    self._raise_for_status(response)
                    return await response.text()
            except (aiohttp.ClientError, TimeoutError) as exc:
                if attempt >= attempts - 1:
                    raise NetworkError("Network request failed.") from exc
                _LOGGER.debug("%s %s failed, retrying (%d/%d)", method, url, attempt + 1, retries)
        raise NetworkError("Network request failed.")

    def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        raise LayoutError(f"Layout request failed with status {response.status}.")

    def _normalize_base_url(self, base_url: str) -> str:
        if not isinstance(base_url, str) or not base_url.strip():
            raise ValidationError("base_url must be a non-empty string.")
        return base_url.strip().rstrip("/")

    def _normalize_api_uri(self, api_uri: str | None) -> str:
        if api_uri is None:
            return ""
        if not isinstance(api_uri, str):
            raise ValidationError("api_uri must be a string.")
        normalized = api_uri.strip().strip("/")
        if not normalized:
            return ""
        return f"/{normalized}"
