"""Text extraction gateway, backend base class, and factory."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..models import ScanKind
from .prompts import NOT_FOUND_SENTINEL, UNKNOWN_PRODUCT_SENTINEL, prompt_for

if TYPE_CHECKING:
    from ..camera import StillImage
    from ..config import FreshTrackConfig

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Base class for extraction failures."""


class RecoverableExtractionError(ExtractionError):
    """The extractor answered but found nothing; the user should retake."""


class NoDateFound(RecoverableExtractionError):
    pass


class UnknownProduct(RecoverableExtractionError):
    pass


class RateLimited(ExtractionError):
    pass


class QuotaExceeded(ExtractionError):
    pass


class RemoteError(ExtractionError):
    pass


def error_for_status(status: int | None, message: str = "") -> ExtractionError:
    """Map an HTTP-style status to the extraction error taxonomy."""
    if status == 429:
        return RateLimited(
            message or "Rate limit exceeded. Please try again in a moment."
        )
    if status == 402:
        return QuotaExceeded(
            message or "AI usage limit reached. Please add credits to continue."
        )
    if status is None:
        return RemoteError(message or "Extraction service error")
    return RemoteError(message or f"Extraction service error: {status}")


def translate_sdk_error(exc: Exception) -> ExtractionError:
    """Classify an exception raised by a vendor SDK by its HTTP status."""
    status = getattr(exc, "status_code", None)
    if not isinstance(status, int):
        status = getattr(exc, "code", None)
    if not isinstance(status, int):
        status = None
    return error_for_status(status, str(exc))


class ExtractionBackend(ABC):
    """Abstract base for image-to-text extraction services."""

    @abstractmethod
    async def extract_text(self, image: StillImage, kind: ScanKind) -> str:
        """Return the raw text the service extracted for ``kind``.

        Transport failures are raised as :class:`ExtractionError` subclasses.
        """
        ...


class ExtractionGateway:
    """Sends a still image to a backend and classifies the outcome.

    No retries happen here; the scanner decides whether the user retakes.
    """

    def __init__(self, backend: ExtractionBackend) -> None:
        self._backend = backend

    async def extract(self, image: StillImage, kind: ScanKind) -> str:
        """Extract ``kind`` from ``image``.

        Returns:
            The extracted text. For expiry dates this is an ISO calendar
            date string as produced by the extractor.

        Raises:
            NoDateFound, UnknownProduct: the recoverable "nothing found" cases.
            RateLimited, QuotaExceeded, RemoteError: transport failures.
        """
        kind = ScanKind(kind)
        try:
            raw = await self._backend.extract_text(image, kind)
        except ExtractionError:
            raise
        except Exception as e:
            logger.exception("Extraction backend failed")
            raise RemoteError(str(e) or type(e).__name__) from e

        if not isinstance(raw, str):
            raise RemoteError(f"Malformed extraction result: {raw!r}")
        text = raw.strip()
        if not text:
            raise RemoteError("Extraction service returned an empty result")

        if kind is ScanKind.EXPIRY_DATE and text == NOT_FOUND_SENTINEL:
            raise NoDateFound("Could not find an expiry date. Please try again.")
        if kind is ScanKind.PRODUCT_NAME and text == UNKNOWN_PRODUCT_SENTINEL:
            raise UnknownProduct("Could not identify the product. Please try again.")

        logger.info("%s extracted: %s", kind.label, text)
        return text


def create_backend(config: FreshTrackConfig) -> ExtractionBackend:
    """Create an extraction backend based on configuration."""
    backend_name = config.extraction.backend

    match backend_name:
        case "claude":
            from .claude import ClaudeExtractionBackend

            return ClaudeExtractionBackend(
                api_key=config.extraction.claude.api_key,
                model=config.extraction.claude.model,
            )
        case "gemini":
            from .gemini import GeminiExtractionBackend

            return GeminiExtractionBackend(
                api_key=config.extraction.gemini.api_key,
                model=config.extraction.gemini.model,
            )
        case "endpoint":
            from .endpoint import EndpointExtractionBackend

            return EndpointExtractionBackend(
                url=config.extraction.endpoint.url,
                api_key=config.extraction.endpoint.api_key,
            )
        case _:
            raise ValueError(
                f"Unknown extraction backend: {backend_name!r} "
                f"(choose claude, gemini or endpoint)"
            )


def create_gateway(config: FreshTrackConfig) -> ExtractionGateway:
    return ExtractionGateway(create_backend(config))


__all__ = [
    "ExtractionBackend",
    "ExtractionError",
    "ExtractionGateway",
    "NOT_FOUND_SENTINEL",
    "NoDateFound",
    "QuotaExceeded",
    "RateLimited",
    "RecoverableExtractionError",
    "RemoteError",
    "UNKNOWN_PRODUCT_SENTINEL",
    "UnknownProduct",
    "create_backend",
    "create_gateway",
    "error_for_status",
    "prompt_for",
    "translate_sdk_error",
]
