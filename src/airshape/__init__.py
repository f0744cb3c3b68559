"""AirShape - finger counting and air-drawn shape recognition from hand landmarks."""

__version__ = "0.1.0"

from airshape.landmarks import HandLandmark, as_hand_frame
from airshape.classifier import GestureSample, LandmarkClassifier
from airshape.shapes import Shape, ShapeAnalysis, ShapeDetector, ShapeThresholds, detect_shape
from airshape.strokes import StrokeAccumulator, StrokeResult, StrokeState
from airshape.scheduler import CancellationToken, SamplingScheduler
from airshape.tasks import AnswerMatcher, AnswerState, Task, TaskType
from airshape.config import EngineConfig
from airshape.recorder import StrokeRecorder, load_strokes
from airshape.profiler import PipelineProfiler
