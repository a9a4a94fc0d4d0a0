"""Claude API backend for label text extraction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import ScanKind
from . import ExtractionBackend, RemoteError, translate_sdk_error
from .prompts import prompt_for

if TYPE_CHECKING:
    from ..camera import StillImage


class ClaudeExtractionBackend(ExtractionBackend):
    """Read product names and expiry dates using Claude's vision capability."""

    def __init__(
        self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929"
    ) -> None:
        self._api_key = api_key
        self._model = model

    async def extract_text(self, image: StillImage, kind: ScanKind) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not configured. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": image.to_base64(),
                },
            },
            {"type": "text", "text": prompt_for(kind)},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=256,
                messages=[{"role": "user", "content": content}],
            )
        except Exception as e:
            raise translate_sdk_error(e) from e

        try:
            return response.content[0].text
        except (AttributeError, IndexError, TypeError) as e:
            raise RemoteError("Malformed response from Claude") from e
