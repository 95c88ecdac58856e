"""
Evenly spaced frame sampling from a video file with OpenCV.

For ``count`` frames over a video of ``duration`` seconds the sample times are

    i * duration / (count + 1),   i = 1..count

so the very first and last frames are never used.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterator, List

import cv2
import numpy as np

from formcoach.cv.errors import VideoReadError

logger = logging.getLogger(__name__)


@dataclass
class VideoMetadata:
    """Basic video properties."""
    width: int
    height: int
    fps: float
    total_frames: int
    duration_seconds: float


@dataclass
class SampledFrame:
    index: int  # 0-based position in the sample
    timestamp: float  # seconds
    image: np.ndarray  # BGR


def sample_times(duration: float, count: int) -> List[float]:
    if count <= 0 or duration <= 0:
        return []
    interval = duration / (count + 1)
    return [i * interval for i in range(1, count + 1)]


class FrameSampler:
    """
    Seeks to evenly spaced timestamps and decodes one frame at each.

    Usage:
        with FrameSampler(path) as sampler:
            for frame in sampler.sample(24):
                ...
    """

    def __init__(self, video_path: str):
        self.video_path = video_path
        self._cap = None
        self.metadata: VideoMetadata = None

    def open(self) -> VideoMetadata:
        cap = cv2.VideoCapture(self.video_path)
        if not cap.isOpened():
            cap.release()
            raise VideoReadError(f"Failed to open video: {self.video_path}")

        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
        total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        duration = total_frames / fps if fps > 0 else 0.0

        if width == 0 or height == 0:
            cap.release()
            raise VideoReadError(f"Video dimensions not available: {self.video_path}")

        self._cap = cap
        self.metadata = VideoMetadata(
            width=width,
            height=height,
            fps=fps,
            total_frames=total_frames,
            duration_seconds=duration,
        )
        logger.info(
            f"Video: {duration:.1f}s, {fps:.1f}fps, {width}x{height}, {total_frames} frames"
        )
        return self.metadata

    def sample(self, count: int) -> Iterator[SampledFrame]:
        """Yield up to ``count`` frames in temporal order. Undecodable frames are skipped."""
        if self._cap is None:
            self.open()

        for index, timestamp in enumerate(sample_times(self.metadata.duration_seconds, count)):
            if not os.path.exists(self.video_path) or not self._cap.isOpened():
                raise VideoReadError(f"Video is no longer readable: {self.video_path}")

            self._cap.set(cv2.CAP_PROP_POS_MSEC, timestamp * 1000.0)
            ret, image = self._cap.read()
            if not ret or image is None:
                logger.warning(f"Could not decode frame at {timestamp:.2f}s")
                continue

            yield SampledFrame(index=index, timestamp=timestamp, image=image)

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "FrameSampler":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
