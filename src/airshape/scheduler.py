"""Bounded-rate sampling loop: frame → detector → LandmarkClassifier.

The scheduler is a single asyncio task. Each tick it checks the rate limit,
skips when the detector or the video source is not ready, otherwise runs
the detector on the latest frame and delivers a GestureSample to the
stroke accumulator (if any) and to sample listeners, in arrival order.
Its only suspension point is the sleep at the end of each tick.

Usage:
    token = CancellationToken()
    scheduler = SamplingScheduler(source, detector, accumulator=accumulator)
    scheduler.on_sample(matcher.check_gesture)
    task = asyncio.create_task(scheduler.run(token))
    ...
    token.cancel()      # view torn down
    await task
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import numpy as np

from airshape.classifier import GestureSample, LandmarkClassifier
from airshape.geometry import to_surface
from airshape.profiler import PipelineProfiler
from airshape.strokes import StrokeAccumulator

try:
    import cv2
except ImportError:
    cv2 = None

logger = logging.getLogger("airshape.scheduler")


class FrameSource(Protocol):
    def read(self) -> Optional[Any]:
        """Latest frame, or None when the source is not producing yet."""


class LandmarkDetector(Protocol):
    @property
    def ready(self) -> bool: ...

    def detect(self, frame: Any, timestamp_ms: int) -> Optional[np.ndarray]:
        """Landmarks of zero or one hand, shape (21, 3)."""


class CancellationToken:
    """One-shot stop signal shared between the loop and its owner."""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class SchedulerStats:
    frames_sampled: int = 0
    frames_skipped: int = 0
    detector_errors: int = 0
    hands_detected: int = 0
    profiler_summary: dict = field(default_factory=dict)


class OpenCVFrameSource:
    """FrameSource over cv2.VideoCapture, yielding RGB frames."""

    def __init__(self, camera_index: int = 0, width: int = 640, height: int = 480):
        if cv2 is None:
            raise ImportError(
                "opencv-python is required. Install with: pip install opencv-python"
            )
        self._capture = cv2.VideoCapture(camera_index)
        self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

    @property
    def is_open(self) -> bool:
        return bool(self._capture.isOpened())

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self._capture.read()
        if not ok:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self):
        self._capture.release()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class SamplingScheduler:
    """Drives the LandmarkClassifier at no more than one sample per min_interval."""

    def __init__(
        self,
        source: FrameSource,
        detector: LandmarkDetector,
        classifier: Optional[LandmarkClassifier] = None,
        accumulator: Optional[StrokeAccumulator] = None,
        min_interval: float = 0.1,
        poll_interval: float = 0.01,
        surface_size: Optional[tuple[float, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.detector = detector
        self.classifier = classifier or LandmarkClassifier()
        self.accumulator = accumulator
        self.min_interval = min_interval
        self.poll_interval = poll_interval
        self.surface_size = surface_size
        self.profiler = PipelineProfiler()

        self._clock = clock
        self._listeners: list[Callable[[GestureSample], None]] = []
        self._last_sample_ms: Optional[int] = None
        self._token: Optional[CancellationToken] = None
        self._running = False
        self._stats = SchedulerStats()

    def on_sample(self, callback: Callable[[GestureSample], None]):
        """Register a callback for every sampled GestureSample."""
        self._listeners.append(callback)

    async def run(self, token: Optional[CancellationToken] = None):
        """Sample until the token is cancelled or the task is cancelled."""
        self._token = token or CancellationToken()
        self._running = True
        logger.info("Sampling loop started (min interval %.0f ms)", self.min_interval * 1000)

        try:
            while not self._token.cancelled:
                self.tick()
                await asyncio.sleep(self.poll_interval)
        finally:
            self._running = False
            if self.accumulator is not None:
                self.accumulator.close()
            logger.info(
                "Sampling loop stopped after %d samples", self._stats.frames_sampled
            )

    def stop(self):
        if self._token is not None:
            self._token.cancel()

    def tick(self) -> Optional[GestureSample]:
        """Run one scheduling step. Returns the sample, or None if skipped."""
        # Rate limit in whole milliseconds, the unit of detector timestamps
        now_ms = round(self._clock() * 1000)
        if (
            self._last_sample_ms is not None
            and now_ms - self._last_sample_ms < round(self.min_interval * 1000)
        ):
            return None

        if not self.detector.ready:
            self._stats.frames_skipped += 1
            return None

        try:
            frame = self.source.read()
        except Exception as e:
            logger.warning("Frame source failed: %s", e)
            frame = None

        if frame is None:
            self._stats.frames_skipped += 1
            return None

        self._last_sample_ms = now_ms
        self._stats.frames_sampled += 1

        try:
            with self.profiler.stage("detection"):
                landmarks = self.detector.detect(frame, now_ms)
        except Exception as e:
            logger.warning("Hand detector failed, treating frame as empty: %s", e)
            self._stats.detector_errors += 1
            landmarks = None

        with self.profiler.stage("classification"):
            sample = self.classifier.classify(landmarks)

        if sample.has_hand:
            self._stats.hands_detected += 1
            logger.debug(
                "Sample: %d fingers, drawing=%s", sample.finger_count, sample.is_drawing_pose
            )

        self._deliver(sample)
        return sample

    def _deliver(self, sample: GestureSample):
        if self.accumulator is not None and sample.index_tip is not None:
            point = None
            if self.surface_size is not None:
                point = to_surface(sample.index_tip, *self.surface_size)
            with self.profiler.stage("accumulation"):
                self.accumulator.feed(sample, point)

        for cb in self._listeners:
            try:
                cb(sample)
            except Exception as e:
                logger.error("Sample listener error: %s", e)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def stats(self) -> SchedulerStats:
        self._stats.profiler_summary = self.profiler.summary()
        return self._stats
