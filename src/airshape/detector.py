"""Single-hand landmark detection using MediaPipe."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from airshape.landmarks import LANDMARK_DIM, NUM_LANDMARKS

try:
    import mediapipe as mp
except ImportError:
    mp = None

logger = logging.getLogger("airshape.detector")


class HandDetector:
    """Extracts the 21 landmarks of at most one hand per frame.

    Landmarks are (x, y, z) with x and y normalized to [0, 1] relative to the
    image, which is the coordinate space the LandmarkClassifier thresholds
    are written for.
    """

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install mediapipe"
            )

        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._closed = False
        logger.debug("MediaPipe Hands initialized")

    @property
    def ready(self) -> bool:
        return not self._closed

    def detect(self, frame_rgb: np.ndarray, timestamp_ms: int = 0) -> Optional[np.ndarray]:
        """Detect one hand in an RGB frame.

        Args:
            frame_rgb: RGB image (H, W, 3), uint8.
            timestamp_ms: Frame time. The legacy Hands solution tracks
                          internally and does not need it.

        Returns:
            Landmark array of shape (21, 3), or None if no hand was found.
        """
        results = self._hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        hand = results.multi_hand_landmarks[0]
        landmarks = np.array(
            [[lm.x, lm.y, lm.z] for lm in hand.landmark],
            dtype=np.float32,
        )
        if landmarks.shape != (NUM_LANDMARKS, LANDMARK_DIM):
            return None
        return landmarks

    def close(self):
        """Release MediaPipe resources."""
        if not self._closed:
            self._hands.close()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
