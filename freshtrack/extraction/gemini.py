"""Gemini API backend for label text extraction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import ScanKind
from . import ExtractionBackend, RemoteError, translate_sdk_error
from .prompts import prompt_for

if TYPE_CHECKING:
    from ..camera import StillImage


class GeminiExtractionBackend(ExtractionBackend):
    """Read product names and expiry dates using Google Gemini."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.5-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def extract_text(self, image: StillImage, kind: ScanKind) -> str:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not configured. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        parts = [
            {"mime_type": image.media_type, "data": image.data},
            prompt_for(kind),
        ]

        try:
            response = await model.generate_content_async(parts)
        except Exception as e:
            raise translate_sdk_error(e) from e

        try:
            return response.text
        except (AttributeError, ValueError) as e:
            # .text raises ValueError when the candidate was blocked
            raise RemoteError("Malformed response from Gemini") from e
