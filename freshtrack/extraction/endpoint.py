"""Backend for a hosted extract-text function reached over HTTP.

The function accepts ``{"imageBase64": <data URL>, "extractType": <kind>}``
and answers ``{"result": text}`` or ``{"error": message}``. A 429 status
means rate limiting, 402 means the usage quota is exhausted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import requests

from ..models import ScanKind
from . import ExtractionBackend, RemoteError, error_for_status

if TYPE_CHECKING:
    from ..camera import StillImage

logger = logging.getLogger(__name__)


class EndpointExtractionBackend(ExtractionBackend):
    """Call the hosted extraction function with a requests session."""

    def __init__(
        self,
        url: str = "",
        api_key: str = "",
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    async def extract_text(self, image: StillImage, kind: ScanKind) -> str:
        if not self._url:
            raise ValueError(
                "Extraction endpoint URL is not configured. "
                "Check the config file or the FRESHTRACK_EXTRACT_URL environment variable."
            )
        payload = {
            "imageBase64": image.to_data_url(),
            "extractType": ScanKind(kind).value,
        }
        return await asyncio.to_thread(self._post, payload)

    def _post(self, payload: dict[str, Any]) -> str:
        try:
            r = self._session.post(self._url, json=payload)
        except requests.RequestException as e:
            raise RemoteError(f"Extraction endpoint unreachable: {e}") from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if not r.ok:
            message = body.get("error", "") if isinstance(body, dict) else ""
            logger.warning("Extraction endpoint error %s: %s", r.status_code, message)
            raise error_for_status(r.status_code, message)

        if not isinstance(body, dict):
            raise RemoteError("Malformed response from extraction endpoint")
        if body.get("error"):
            raise RemoteError(str(body["error"]))
        result = body.get("result")
        if not isinstance(result, str):
            raise RemoteError("Extraction endpoint response has no result")
        return result
