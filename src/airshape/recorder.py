"""Stroke recording: save drawn strokes to disk and load them back.

Recorded strokes are used for:
- Reproducible tests without a camera
- Tuning shape thresholds offline (`airshape analyze`)
- Regression checks of the classifier (`airshape detect`)
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from airshape.geometry import Point
from airshape.strokes import StrokeResult

FORMAT_VERSION = 1


@dataclass
class RecordedStroke:
    """One stroke with an optional expected label."""
    points: list[Point]
    label: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "timestamp": self.timestamp,
            "points": [[round(x, 6), round(y, 6)] for x, y in self.points],
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecordedStroke:
        return cls(
            points=[(float(p[0]), float(p[1])) for p in data["points"]],
            label=data.get("label"),
            timestamp=data.get("timestamp", 0.0),
        )


class StrokeRecorder:
    """Collects strokes and writes them as versioned JSON.

    Usage:
        recorder = StrokeRecorder(label="circle")
        accumulator.on_result(recorder.add_result)
        ...
        recorder.save("circles.json")
    """

    def __init__(self, label: Optional[str] = None):
        self.label = label
        self._strokes: list[RecordedStroke] = []

    def add(self, points, label: Optional[str] = None):
        self._strokes.append(RecordedStroke(
            points=[(float(x), float(y)) for x, y in points],
            label=label if label is not None else self.label,
        ))

    def add_result(self, result: StrokeResult):
        """Accumulator listener: record every submitted stroke."""
        self.add(result.points)

    @property
    def strokes(self) -> list[RecordedStroke]:
        return list(self._strokes)

    def __len__(self) -> int:
        return len(self._strokes)

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "stroke_count": len(self._strokes),
            "strokes": [s.to_dict() for s in self._strokes],
        }
        with open(path, "w") as f:
            json.dump(data, f)


def load_strokes(path: str | Path) -> list[RecordedStroke]:
    """Read strokes written by StrokeRecorder.save.

    Raises:
        ValueError: if the file is not a stroke recording or was written by
                    an unsupported format version.
    """
    with open(path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Not a stroke file: top level is {type(data).__name__}")

    version = data.get("version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported stroke file version: {version}")

    try:
        return [RecordedStroke.from_dict(s) for s in data.get("strokes", [])]
    except (KeyError, TypeError, IndexError, AttributeError) as e:
        raise ValueError(f"Malformed stroke entry: {e}") from e
