"""Answer matching for gesture and drawing tasks.

The matcher is the thin edge of the surrounding game: it knows the current
task and decides when an engine result answers it. Once an answer is
accepted nothing more is accepted until the next task is set, so repeated
samples of the same pose cannot score twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from airshape.classifier import GestureSample
from airshape.shapes import Shape
from airshape.strokes import StrokeAccumulator, StrokeResult

logger = logging.getLogger("airshape.tasks")


class TaskType(Enum):
    GESTURE = "gesture"
    DRAWING = "drawing"


class AnswerState(Enum):
    IDLE = "idle"          # no task set
    WAITING = "waiting"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class Task:
    """A single question: show N fingers, or draw a named shape."""
    id: str
    type: TaskType
    answer: Union[int, str]
    question: str = ""
    instruction: str = ""

    @classmethod
    def gesture(cls, answer: int, task_id: str = "gesture") -> Task:
        return cls(
            id=task_id,
            type=TaskType.GESTURE,
            answer=answer,
            question=f"Show me {answer} finger{'s' if answer != 1 else ''}",
            instruction="Show the answer with fingers",
        )

    @classmethod
    def drawing(cls, shape: Union[Shape, str], task_id: str = "drawing") -> Task:
        name = Shape(shape).value
        return cls(
            id=task_id,
            type=TaskType.DRAWING,
            answer=name,
            question=f"Draw a {name}",
            instruction=f"Draw a {name} in the air",
        )

    @classmethod
    def parse(cls, text: str) -> Task:
        """Build a task from "3" (gesture) or "circle" (drawing).

        Raises:
            ValueError: for anything else.
        """
        text = text.strip().lower()
        if text.isdigit():
            count = int(text)
            if not 1 <= count <= 5:
                raise ValueError(f"Finger count must be 1-5, got {count}")
            return cls.gesture(count)
        shape = Shape(text)
        if shape is Shape.UNKNOWN:
            raise ValueError("'unknown' is not a drawable shape")
        return cls.drawing(shape)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "answer": self.answer,
            "question": self.question,
            "instruction": self.instruction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        return cls(
            id=str(data["id"]),
            type=TaskType(data["type"]),
            answer=data["answer"],
            question=data.get("question", ""),
            instruction=data.get("instruction", ""),
        )


class AnswerMatcher:
    """Checks engine output against the current task."""

    def __init__(self):
        self._task: Optional[Task] = None
        self._state = AnswerState.IDLE
        self._accumulator: Optional[StrokeAccumulator] = None
        self._on_correct: list[Callable[[Task], None]] = []
        self._on_incorrect: list[Callable[[Task, Shape], None]] = []

    def on_correct(self, callback: Callable[[Task], None]):
        self._on_correct.append(callback)

    def on_incorrect(self, callback: Callable[[Task, Shape], None]):
        self._on_incorrect.append(callback)

    def bind(self, accumulator: StrokeAccumulator):
        """Route stroke results here and toggle the accumulator with the task type."""
        self._accumulator = accumulator
        accumulator.on_result(self._handle_stroke)
        accumulator.enabled = self.expects_drawing

    def set_task(self, task: Optional[Task]) -> bool:
        """Wait for an answer to `task`. Returns True when strokes should be recorded."""
        self._task = task
        self._state = AnswerState.WAITING if task is not None else AnswerState.IDLE
        if self._accumulator is not None:
            self._accumulator.cancel()
            self._accumulator.enabled = self.expects_drawing
        if task is not None:
            logger.info("Task %s: %s", task.id, task.question or task.answer)
        return self.expects_drawing

    def check_gesture(self, sample: GestureSample) -> bool:
        """Accept a finger count equal to the answer. Zero is never accepted."""
        task = self._task
        if self._state is not AnswerState.WAITING or task is None:
            return False
        if task.type is not TaskType.GESTURE:
            return False
        if sample.finger_count > 0 and sample.finger_count == task.answer:
            self._accept()
            return True
        return False

    def check_shape(self, shape: Shape) -> bool:
        """Accept a stroke label equal to the answer; report anything else."""
        task = self._task
        if self._state is not AnswerState.WAITING or task is None:
            return False
        if task.type is not TaskType.DRAWING:
            return False
        if shape.value == task.answer:
            self._accept()
            return True

        logger.debug("Expected %s, got %s", task.answer, shape.value)
        for cb in self._on_incorrect:
            try:
                cb(task, shape)
            except Exception as e:
                logger.error("Incorrect-answer listener error: %s", e)
        return False

    def _handle_stroke(self, result: StrokeResult):
        self.check_shape(result.shape)

    def _accept(self):
        self._state = AnswerState.ACCEPTED
        task = self._task
        logger.info("Task %s answered correctly", task.id)
        if self._accumulator is not None:
            self._accumulator.cancel()
            self._accumulator.enabled = False
        for cb in self._on_correct:
            try:
                cb(task)
            except Exception as e:
                logger.error("Correct-answer listener error: %s", e)

    @property
    def task(self) -> Optional[Task]:
        return self._task

    @property
    def state(self) -> AnswerState:
        return self._state

    @property
    def expects_drawing(self) -> bool:
        return (
            self._state is AnswerState.WAITING
            and self._task is not None
            and self._task.type is TaskType.DRAWING
        )
