"""Full-screen scanner: capture a label, extract text, hand it back."""

from __future__ import annotations

import logging

from .camera import CameraCaptureController, CameraError, CaptureState, PermissionDenied
from .extraction import (
    ExtractionError,
    ExtractionGateway,
    RecoverableExtractionError,
)
from .models import ScanKind, ScanRequest, ScanResult
from .navigation import Navigator
from .notify import Notifier

logger = logging.getLogger(__name__)


class ScanSession:
    """Drives one scan request from camera start to return navigation.

    Every failure leaves the session retry-ready: camera errors wait for
    :meth:`retry_camera`, "nothing found" waits for :meth:`retake`, and
    transport errors keep the still so :meth:`use_photo` can be tried again.
    """

    def __init__(
        self,
        request: ScanRequest,
        camera: CameraCaptureController,
        gateway: ExtractionGateway,
        navigator: Navigator,
        notifier: Notifier | None = None,
    ) -> None:
        self.request = request
        self._camera = camera
        self._gateway = gateway
        self._navigator = navigator
        self._notifier = notifier or Notifier()
        self.processing = False
        self.closed = False

    @property
    def camera_state(self) -> CaptureState:
        return self._camera.state

    @property
    def instructions(self) -> str:
        if self.request.kind is ScanKind.PRODUCT_NAME:
            return "Point camera at the product label or packaging"
        return "Point camera at the expiry date on the packaging"

    async def open(self) -> bool:
        """Start the camera. Returns False if it could not be started."""
        return await self._start(self._camera.start)

    async def retry_camera(self) -> bool:
        """Explicit user retry after a camera error."""
        return await self._start(self._camera.start)

    async def retake(self) -> bool:
        """Discard the photo and reopen the camera (user action)."""
        return await self._start(self._camera.retake)

    async def _start(self, action) -> bool:
        try:
            await action()
        except PermissionDenied as e:
            self._notifier.error(
                f"{e} Please allow camera access and try again."
            )
            return False
        except CameraError as e:
            self._notifier.error(str(e) or "Could not access camera.")
            return False
        return True

    def capture(self) -> bool:
        try:
            still = self._camera.capture()
        except CameraError as e:
            self._notifier.error(str(e))
            return False
        return still is not None

    async def use_photo(self) -> ScanResult | None:
        """Send the captured still for extraction.

        On success the camera is stopped and the result is carried back to
        the form. Returns None if the user has to retry, or if the scanner
        was closed while the call was in flight; a late answer is dropped.
        """
        still = self._camera.still
        if still is None or self.processing or self.closed:
            return None

        kind = self.request.kind
        self.processing = True
        try:
            text = await self._gateway.extract(still, kind)
        except ExtractionError as e:
            if not self.closed:
                await self._extraction_failed(e)
            return None
        finally:
            self.processing = False

        if self.closed:
            logger.debug("Scanner closed during extraction; result dropped")
            return None

        result = ScanResult(kind=kind, text=text)
        self._notifier.success(f"{kind.label} detected!")
        self._finish(result)
        return result

    async def _extraction_failed(self, e: ExtractionError) -> None:
        if isinstance(e, RecoverableExtractionError):
            self._notifier.error(str(e))
            await self._camera.retake(user_initiated=False)
            return
        logger.warning("Extraction failed: %s", e)
        self._notifier.error(str(e) or "Failed to process image. Please try again.")

    def close(self) -> None:
        """Leave the scanner without a result."""
        self._finish(None)

    def _finish(self, result: ScanResult | None) -> None:
        if self.closed:
            return
        self._camera.stop()
        self.closed = True
        self._navigator.return_to_form(result)

    async def __aenter__(self) -> ScanSession:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.close()
