"""Stroke accumulation for air-drawing tasks.

Buffers index-fingertip positions while the drawing pose is held and
decides when a stroke is finished: after `inactivity_timeout` seconds with
no new point the stroke is either classified (enough points) or thrown
away. The inactivity timer is an asyncio TimerHandle on the running loop,
so the accumulator must be fed from inside that loop.

Usage:
    accumulator = StrokeAccumulator()
    accumulator.on_result(lambda result: print(result.shape))
    accumulator.enabled = True      # active task is a drawing task
    # For every sample:
    accumulator.feed(sample, point=surface_point)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from airshape.classifier import GestureSample
from airshape.geometry import Point
from airshape.shapes import Shape, ShapeDetector

logger = logging.getLogger("airshape.strokes")


class StrokeState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


@dataclass(frozen=True)
class StrokeResult:
    """A classified stroke, delivered to result listeners."""
    shape: Shape
    points: tuple[Point, ...]
    timestamp: float

    @property
    def point_count(self) -> int:
        return len(self.points)


class StrokeAccumulator:
    """Idle/Recording state machine that turns samples into shape results."""

    def __init__(
        self,
        detector: Optional[ShapeDetector] = None,
        inactivity_timeout: float = 1.5,
        min_points: int = 20,
    ):
        self.detector = detector or ShapeDetector()
        self.inactivity_timeout = inactivity_timeout
        self.min_points = min_points
        self.enabled = False

        self._state = StrokeState.IDLE
        self._stroke: list[Point] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._classifying = False
        self._listeners: list[Callable[[StrokeResult], None]] = []

    def on_result(self, callback: Callable[[StrokeResult], None]):
        """Register a callback for classified strokes."""
        self._listeners.append(callback)

    def feed(self, sample: GestureSample, point: Optional[Point] = None) -> bool:
        """Process one sample. Returns True if a point was appended.

        Args:
            sample: Classified frame.
            point: The fingertip already mapped onto the drawing surface.
                   Defaults to sample.index_tip in detector coordinates.
        """
        if not self.enabled or self._classifying:
            return False
        if not sample.is_drawing_pose or sample.index_tip is None:
            return False

        if self._state is StrokeState.IDLE:
            self._state = StrokeState.RECORDING
            logger.debug("Stroke started")

        p = point if point is not None else sample.index_tip
        self._stroke.append((float(p[0]), float(p[1])))
        self._restart_timer()
        return True

    def expire(self) -> Optional[StrokeResult]:
        """Finish the current stroke as if the inactivity timer fired.

        Strokes with more than `min_points` points are classified; shorter
        ones are discarded without touching the shape detector. Either way
        the accumulator goes back to IDLE with a fresh stroke.
        """
        self._cancel_timer()
        if self._state is not StrokeState.RECORDING:
            return None
        return self.submit()

    def submit(self) -> Optional[StrokeResult]:
        """Finish the current stroke now, with the same rules as the timer.

        Refused (returns None) while another classification is in flight.
        Strokes of `min_points` points or fewer are discarded without
        touching the shape detector and also return None.
        """
        if self._classifying:
            return None

        if len(self._stroke) <= self.min_points:
            if self._stroke:
                logger.debug("Discarding stroke with %d points", len(self._stroke))
            self._reset_stroke()
            return None

        return self._classify()

    def _classify(self) -> StrokeResult:
        self._classifying = True
        snapshot = tuple(self._stroke)
        self._reset_stroke()

        try:
            shape = self.detector.detect(snapshot)
            result = StrokeResult(shape=shape, points=snapshot, timestamp=time.monotonic())
            logger.info("Stroke of %d points classified as %s", len(snapshot), shape.value)
            for cb in self._listeners:
                try:
                    cb(result)
                except Exception as e:
                    logger.error("Stroke listener error: %s", e)
            return result
        finally:
            self._classifying = False

    def cancel(self):
        """Drop the current stroke and any pending timer."""
        self._reset_stroke()

    def close(self):
        """Stop accepting samples and release the timer and guard."""
        self.enabled = False
        self._reset_stroke()
        self._classifying = False

    def _restart_timer(self):
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.inactivity_timeout, self.expire)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _reset_stroke(self):
        self._cancel_timer()
        self._stroke = []
        self._state = StrokeState.IDLE

    @property
    def state(self) -> StrokeState:
        return self._state

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._stroke)

    @property
    def point_count(self) -> int:
        return len(self._stroke)

    @property
    def is_classifying(self) -> bool:
        return self._classifying

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None
