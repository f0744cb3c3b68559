"""Per-frame landmark classification: finger count and drawing pose."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from airshape.geometry import Point
from airshape.landmarks import FINGER_JOINTS, HandLandmark, as_hand_frame


@dataclass(frozen=True)
class GestureSample:
    """What one video frame says about the hand.

    index_tip is None exactly when no hand was detected.
    """
    finger_count: int = 0
    index_tip: Optional[Point] = None
    is_drawing_pose: bool = False

    @classmethod
    def neutral(cls) -> GestureSample:
        return cls()

    @property
    def has_hand(self) -> bool:
        return self.index_tip is not None

    def to_dict(self) -> dict:
        return {
            "finger_count": self.finger_count,
            "index_tip": list(self.index_tip) if self.index_tip else None,
            "is_drawing_pose": self.is_drawing_pose,
        }


def finger_states(frame: np.ndarray) -> list[bool]:
    """Extension flags for thumb, index, middle, ring and pinky.

    The thumb counts as extended when its tip is left of its IP joint in
    image x. This assumes one handedness in a mirrored video and is not
    handedness-invariant. The other fingers are extended when the tip is
    above the PIP joint (image y grows downward).
    """
    thumb = bool(frame[HandLandmark.THUMB_TIP, 0] < frame[HandLandmark.THUMB_IP, 0])
    others = [bool(frame[tip, 1] < frame[pip, 1]) for tip, pip in FINGER_JOINTS]
    return [thumb] + others


def count_fingers(frame: np.ndarray) -> int:
    return sum(finger_states(frame))


class LandmarkClassifier:
    """Turns one hand's 21 landmarks into a GestureSample.

    Stateless: every call depends only on its input frame. Missing or
    malformed frames produce the neutral sample instead of an error.

    The drawing pose is signalled by a *wide* gap between the index and
    thumb tips (distance > draw_threshold), not by a pinch.
    """

    def __init__(self, draw_threshold: float = 0.08):
        self.draw_threshold = draw_threshold

    def classify(self, landmarks) -> GestureSample:
        frame = as_hand_frame(landmarks)
        if frame is None:
            return GestureSample.neutral()

        index_tip = frame[HandLandmark.INDEX_TIP]
        thumb_tip = frame[HandLandmark.THUMB_TIP]
        gap = math.hypot(
            float(index_tip[0] - thumb_tip[0]),
            float(index_tip[1] - thumb_tip[1]),
        )

        return GestureSample(
            finger_count=count_fingers(frame),
            index_tip=(float(index_tip[0]), float(index_tip[1])),
            is_drawing_pose=gap > self.draw_threshold,
        )
