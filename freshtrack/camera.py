"""Camera capture controller using OpenCV."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Base class for capture failures."""


class PermissionDenied(CameraError):
    pass


class DeviceUnavailable(CameraError):
    pass


class DeviceBusy(CameraError):
    pass


class Unsupported(CameraError):
    pass


class OverConstrained(CameraError):
    """The requested constraints cannot be satisfied by any device."""


class CaptureState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    ACTIVE = "active"
    CAPTURED = "captured"
    PERMISSION_ERROR = "permission_error"
    DEVICE_ERROR = "device_error"


@dataclass(frozen=True)
class CameraConstraints:
    """What to ask the device for. ``None`` means no preference."""

    camera_index: int | None = None
    width: int | None = None
    height: int | None = None

    @classmethod
    def preferred(
        cls, camera_index: int = 0, width: int = 1280, height: int = 720
    ) -> CameraConstraints:
        return cls(camera_index=camera_index, width=width, height=height)

    @classmethod
    def minimal(cls) -> CameraConstraints:
        return cls()


@dataclass
class StillImage:
    """An encoded still frame held in memory."""

    data: bytes
    media_type: str = "image/jpeg"
    width: int = 0
    height: int = 0
    captured_at: str = ""  # ISO8601

    def to_base64(self) -> str:
        return base64.standard_b64encode(self.data).decode()

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.to_base64()}"

    @classmethod
    def from_file(cls, path: str | Path) -> StillImage:
        """Load an existing image file instead of capturing one."""
        data = Path(path).read_bytes()
        media_type = mimetypes.guess_type(str(path))[0] or "image/jpeg"
        return cls(
            data=data,
            media_type=media_type,
            captured_at=datetime.now(timezone.utc).isoformat(),
        )


class VideoDevice(Protocol):
    def snapshot(self, jpeg_quality: int = 80) -> StillImage: ...

    def release(self) -> None: ...


DeviceOpener = Callable[[CameraConstraints], VideoDevice]


def _import_cv2() -> Any:
    try:
        import cv2
    except ImportError:
        raise Unsupported(
            "opencv-python is required for camera capture: pip install opencv-python"
        ) from None
    return cv2


class OpenCVDevice:
    """A VideoCapture handle opened by :func:`open_opencv_device`."""

    def __init__(self, cap: Any, camera_index: int) -> None:
        self._cap = cap
        self.camera_index = camera_index

    def snapshot(self, jpeg_quality: int = 80) -> StillImage:
        cv2 = _import_cv2()
        ret, frame = self._cap.read()
        if not ret or frame is None:
            raise DeviceBusy(
                f"Camera {self.camera_index} stopped delivering frames."
            )
        ok, buf = cv2.imencode(
            ".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), jpeg_quality]
        )
        if not ok:
            raise DeviceBusy(f"Could not encode a frame from camera {self.camera_index}.")
        height, width = frame.shape[:2]
        return StillImage(
            data=buf.tobytes(),
            media_type="image/jpeg",
            width=int(width),
            height=int(height),
            captured_at=datetime.now(timezone.utc).isoformat(),
        )

    def release(self) -> None:
        self._cap.release()


def list_cameras(max_check: int = 10) -> list[int]:
    """List available camera indices by probing."""
    cv2 = _import_cv2()

    available: list[int] = []
    for i in range(max_check):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            available.append(i)
        cap.release()
    return available


def _check_permission(camera_index: int) -> None:
    node = Path(f"/dev/video{camera_index}")
    if node.exists() and not os.access(node, os.R_OK | os.W_OK):
        raise PermissionDenied(
            f"Camera access denied for {node}. "
            f"Add your user to the 'video' group or adjust permissions."
        )


def open_opencv_device(constraints: CameraConstraints) -> OpenCVDevice:
    """Open a camera matching ``constraints``.

    A specific index that cannot be opened raises :class:`OverConstrained`,
    so the caller can fall back to any camera.
    """
    cv2 = _import_cv2()

    if constraints.camera_index is None:
        cameras = list_cameras()
        if not cameras:
            raise DeviceUnavailable("No camera found on this device.")
        index = cameras[0]
    else:
        index = constraints.camera_index

    _check_permission(index)

    cap = cv2.VideoCapture(index)
    if not cap.isOpened():
        cap.release()
        if constraints.camera_index is None:
            raise DeviceUnavailable("No camera found on this device.")
        raise OverConstrained(f"Camera {index} could not be opened.")

    if constraints.width and constraints.height:
        # Best effort; the driver may pick the nearest supported size.
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)

    # Devices held by another process often open but never deliver frames.
    ret, _ = cap.read()
    if not ret:
        cap.release()
        raise DeviceBusy(f"Camera {index} is in use by another application.")

    return OpenCVDevice(cap, index)


def _release_late(fut: asyncio.Future) -> None:
    if fut.cancelled() or fut.exception() is not None:
        return
    fut.result().release()


class CameraCaptureController:
    """Owns a single video device and the most recent still frame.

    The controller is the only holder of the device handle. Every exit path
    must call :meth:`stop`; using the controller as an async context manager
    does that automatically.
    """

    def __init__(
        self,
        opener: DeviceOpener = open_opencv_device,
        *,
        camera_index: int = 0,
        width: int = 1280,
        height: int = 720,
        jpeg_quality: int = 80,
    ) -> None:
        self._opener = opener
        self._preferred = CameraConstraints.preferred(camera_index, width, height)
        self._jpeg_quality = jpeg_quality
        self._device: VideoDevice | None = None
        self._still: StillImage | None = None
        self._state = CaptureState.IDLE
        self._error: CameraError | None = None
        self._epoch = 0
        self._starting: asyncio.Future | None = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def still(self) -> StillImage | None:
        return self._still

    @property
    def error(self) -> CameraError | None:
        return self._error

    @property
    def is_active(self) -> bool:
        return self._state is CaptureState.ACTIVE

    @property
    def has_device(self) -> bool:
        return self._device is not None

    async def start(self) -> None:
        """Acquire the camera and go live.

        A call made while an acquisition is already in flight waits for that
        acquisition instead of opening a second device.

        Raises:
            PermissionDenied, DeviceUnavailable, DeviceBusy, Unsupported
        """
        if self._state is CaptureState.ACTIVE:
            return
        if self._starting is not None:
            await asyncio.shield(self._starting)
            return

        task = asyncio.ensure_future(self._start())
        self._starting = task
        try:
            await task
        finally:
            if self._starting is task:
                self._starting = None

    async def _start(self) -> None:
        self._release_device()
        self._still = None
        self._error = None
        self._state = CaptureState.REQUESTING
        epoch = self._epoch

        try:
            device = await self._acquire()
        except PermissionDenied as e:
            if epoch == self._epoch:
                self._state = CaptureState.PERMISSION_ERROR
                self._error = e
            raise
        except CameraError as e:
            if epoch == self._epoch:
                self._state = CaptureState.DEVICE_ERROR
                self._error = e
            raise

        if epoch != self._epoch:
            # stop() was called while the device was being opened
            logger.debug("Camera acquired after stop(); releasing it")
            device.release()
            return

        self._device = device
        self._state = CaptureState.ACTIVE
        logger.info("Camera active")

    async def _acquire(self) -> VideoDevice:
        try:
            return await self._open(self._preferred)
        except (Unsupported, OverConstrained) as e:
            logger.info("Preferred camera unavailable (%s); retrying with any camera", e)

        try:
            return await self._open(CameraConstraints.minimal())
        except OverConstrained as e:
            raise DeviceUnavailable(str(e)) from e

    async def _open(self, constraints: CameraConstraints) -> VideoDevice:
        fut = asyncio.ensure_future(asyncio.to_thread(self._opener, constraints))
        try:
            return await asyncio.shield(fut)
        except asyncio.CancelledError:
            fut.add_done_callback(_release_late)
            raise

    def capture(self) -> StillImage | None:
        """Snapshot the live feed and release the device.

        Returns ``None`` without side effects if no feed is active.
        """
        if self._state is not CaptureState.ACTIVE or self._device is None:
            logger.debug("capture() ignored: no active feed")
            return None

        try:
            still = self._device.snapshot(self._jpeg_quality)
        except CameraError as e:
            self._state = CaptureState.DEVICE_ERROR
            self._error = e
            raise
        finally:
            self._release_device()

        self._still = still
        self._state = CaptureState.CAPTURED
        logger.info("Captured %dx%d still", still.width, still.height)
        return still

    async def retake(self, *, user_initiated: bool = True) -> None:
        """Discard the still frame.

        Only an explicit user action reopens the camera; otherwise the
        controller waits in IDLE for the user.
        """
        self._still = None
        self._release_device()
        self._state = CaptureState.IDLE
        if user_initiated:
            await self.start()

    def stop(self) -> None:
        """Release the device and discard the still. Safe to call repeatedly."""
        self._epoch += 1
        self._starting = None
        if self._device is not None:
            logger.info("Camera released")
        self._release_device()
        self._still = None
        self._error = None
        self._state = CaptureState.IDLE

    def _release_device(self) -> None:
        device, self._device = self._device, None
        if device is not None:
            device.release()

    async def __aenter__(self) -> CameraCaptureController:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.stop()
