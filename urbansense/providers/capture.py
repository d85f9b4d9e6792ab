"""Camera adapters built on OpenCV."""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Callable

import cv2
import numpy as np

from ..constants import MSG_CAMERA_UNAVAILABLE, MSG_CAMERA_UNSUPPORTED
from ..errors import CaptureError
from .base import CaptureErrorCallback

LOGGER = logging.getLogger(__name__)


def encode_frame(frame: np.ndarray, quality: int = 80) -> str | None:
    """JPEG-encode ``frame`` and return it as base64 without a data-URL prefix."""

    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        return None
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def _report(on_error: CaptureErrorCallback | None, error: CaptureError) -> None:
    LOGGER.error("Camera unavailable: %s", error.message)
    if on_error is not None:
        on_error(error)


class OpenCVCaptureProvider:
    """Live camera feed via :class:`cv2.VideoCapture`.

    The device is opened once in :meth:`start`. A failed read later on only
    yields ``None`` for that attempt; the stream is not reopened.
    """

    def __init__(
        self,
        camera_index: int = 0,
        jpeg_quality: int = 80,
        *,
        width: int = 1280,
        height: int = 720,
        video_capture_factory: Callable[[int], cv2.VideoCapture] = cv2.VideoCapture,
    ) -> None:
        self.camera_index = camera_index
        self.jpeg_quality = jpeg_quality
        self.width = width
        self.height = height
        self._factory = video_capture_factory
        self._cap: cv2.VideoCapture | None = None

    @property
    def ready(self) -> bool:
        return self._cap is not None

    def _open(self) -> cv2.VideoCapture | None:
        cap = self._factory(self.camera_index)
        if not cap.isOpened():
            cap.release()
            return None
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        # Keep only the newest frame so a capture reflects "now".
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        return cap

    async def start(self, on_error: CaptureErrorCallback | None = None) -> bool:
        if self._cap is not None:
            return True
        cap = await asyncio.to_thread(self._open)
        if cap is None:
            detail = f"unable to open camera {self.camera_index}"
            _report(on_error, CaptureError("no-device", MSG_CAMERA_UNAVAILABLE.format(detail=detail)))
            return False
        self._cap = cap
        LOGGER.info("Camera %s opened", self.camera_index)
        return True

    def _read(self) -> np.ndarray | None:
        if self._cap is None:
            return None
        # Drop the buffered frame, then decode the live one.
        self._cap.grab()
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        return frame

    async def capture_frame(self) -> str | None:
        if self._cap is None:
            return None
        frame = await asyncio.to_thread(self._read)
        if frame is None:
            LOGGER.warning("Camera %s returned no frame", self.camera_index)
            return None
        return encode_frame(frame, self.jpeg_quality)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class StaticImageCaptureProvider:
    """Serves a still image from disk, for headless runs and demos."""

    def __init__(self, path: str | Path, jpeg_quality: int = 80) -> None:
        self.path = Path(path).expanduser()
        self.jpeg_quality = jpeg_quality
        self._encoded: str | None = None

    async def start(self, on_error: CaptureErrorCallback | None = None) -> bool:
        frame = await asyncio.to_thread(cv2.imread, str(self.path))
        if frame is None:
            detail = f"cannot read image {self.path}"
            _report(on_error, CaptureError("no-device", MSG_CAMERA_UNAVAILABLE.format(detail=detail)))
            return False
        self._encoded = encode_frame(frame, self.jpeg_quality)
        return self._encoded is not None

    async def capture_frame(self) -> str | None:
        return self._encoded

    def close(self) -> None:
        self._encoded = None


class UnsupportedCaptureProvider:
    async def start(self, on_error: CaptureErrorCallback | None = None) -> bool:
        _report(on_error, CaptureError("unsupported", MSG_CAMERA_UNSUPPORTED))
        return False

    async def capture_frame(self) -> str | None:
        return None

    def close(self) -> None:
        return None


def bind_capture(
    *, image_path: str | None = None, camera_index: int | None = 0, jpeg_quality: int = 80
):
    """Choose the capture adapter once at startup."""

    if image_path:
        return StaticImageCaptureProvider(image_path, jpeg_quality=jpeg_quality)
    if camera_index is None or camera_index < 0:
        return UnsupportedCaptureProvider()
    return OpenCVCaptureProvider(camera_index, jpeg_quality=jpeg_quality)


__all__ = [
    "OpenCVCaptureProvider",
    "StaticImageCaptureProvider",
    "UnsupportedCaptureProvider",
    "bind_capture",
    "encode_frame",
]
