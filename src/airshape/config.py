"""Engine configuration loaded from YAML.

Every threshold the engine uses is a tunable parameter here. Example file:

    classifier:
      draw_threshold: 0.08
    strokes:
      inactivity_timeout: 1.5
      min_points: 20
    scheduler:
      min_interval: 0.1
      camera_index: 0
    shapes:
      closure_distance: 0.15
      corner_angle: 0.7853981633974483

Missing sections or keys fall back to defaults; unknown keys are ignored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from airshape.shapes import ShapeThresholds


def _mapping(data, where: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be a mapping, got {type(data).__name__}")
    return data


def _known(cls, data: Optional[dict], where: str) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in _mapping(data, where).items() if k in names}


@dataclass
class ClassifierConfig:
    draw_threshold: float = 0.08


@dataclass
class StrokeConfig:
    inactivity_timeout: float = 1.5
    min_points: int = 20


@dataclass
class SchedulerConfig:
    min_interval: float = 0.1
    poll_interval: float = 0.01
    camera_index: int = 0
    camera_width: int = 640
    camera_height: int = 480
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass
class EngineConfig:
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    strokes: StrokeConfig = field(default_factory=StrokeConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    shapes: ShapeThresholds = field(default_factory=ShapeThresholds)

    def to_dict(self) -> dict:
        return {
            "classifier": asdict(self.classifier),
            "strokes": asdict(self.strokes),
            "scheduler": asdict(self.scheduler),
            "shapes": self.shapes.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> EngineConfig:
        """Build a config from nested dicts.

        Raises:
            ValueError: if the top level or a section is not a mapping.
        """
        data = _mapping(data, "config")
        return cls(
            classifier=ClassifierConfig(
                **_known(ClassifierConfig, data.get("classifier"), "classifier")
            ),
            strokes=StrokeConfig(**_known(StrokeConfig, data.get("strokes"), "strokes")),
            scheduler=SchedulerConfig(
                **_known(SchedulerConfig, data.get("scheduler"), "scheduler")
            ),
            shapes=ShapeThresholds.from_dict(_mapping(data.get("shapes"), "shapes")),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)

    def save_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
