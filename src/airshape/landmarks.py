"""Anatomical hand landmark ids and HandFrame validation."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

import numpy as np


class HandLandmark(IntEnum):
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = len(HandLandmark)
LANDMARK_DIM = 3  # x, y, z

# (tip, pip) pairs for the four non-thumb fingers
FINGER_JOINTS = [
    (HandLandmark.INDEX_TIP, HandLandmark.INDEX_PIP),
    (HandLandmark.MIDDLE_TIP, HandLandmark.MIDDLE_PIP),
    (HandLandmark.RING_TIP, HandLandmark.RING_PIP),
    (HandLandmark.PINKY_TIP, HandLandmark.PINKY_PIP),
]


def as_hand_frame(landmarks) -> Optional[np.ndarray]:
    """Convert detector output into a (21, 3) float32 HandFrame.

    Accepts anything numpy can turn into a 2-D numeric array: arrays,
    nested lists, or lists of (x, y[, z]) tuples. (21, 2) input is padded
    with z=0.

    Returns:
        The validated frame, or None when the input is missing or malformed
        (wrong shape, non-numeric, non-finite x/y). A malformed frame is
        indistinguishable from "no hand" for the callers.
    """
    if landmarks is None:
        return None

    try:
        arr = np.asarray(landmarks, dtype=np.float32)
    except (TypeError, ValueError):
        return None

    if arr.ndim != 2 or arr.shape[0] != NUM_LANDMARKS or arr.shape[1] < 2:
        return None

    if not np.all(np.isfinite(arr[:, :2])):
        return None

    if arr.shape[1] == 2:
        arr = np.column_stack([arr, np.zeros(NUM_LANDMARKS, dtype=np.float32)])

    return arr[:, :LANDMARK_DIM]
