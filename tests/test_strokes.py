"""Tests for the stroke accumulator state machine."""

import asyncio
import math

import pytest

from airshape.classifier import GestureSample
from airshape.shapes import Shape, ShapeDetector
from airshape.strokes import StrokeAccumulator, StrokeResult, StrokeState


def run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def drawing(x=0.5, y=0.5):
    return GestureSample(finger_count=1, index_tip=(x, y), is_drawing_pose=True)


def circle_samples(n=60):
    return [
        drawing(0.5 + 0.3 * math.cos(2 * math.pi * i / n),
                0.5 + 0.3 * math.sin(2 * math.pi * i / n))
        for i in range(n)
    ]


class SpyDetector(ShapeDetector):
    """Records every stroke it is asked to classify."""

    def __init__(self, shape=Shape.CIRCLE):
        super().__init__()
        self.calls = []
        self.shape = shape

    def detect(self, points):
        self.calls.append(points)
        return self.shape


def make_accumulator(**kwargs):
    kwargs.setdefault("detector", SpyDetector())
    acc = StrokeAccumulator(**kwargs)
    acc.enabled = True
    return acc


class TestFeeding:
    def test_initial_state(self):
        acc = StrokeAccumulator()
        assert acc.state == StrokeState.IDLE
        assert acc.point_count == 0
        assert not acc.enabled
        assert not acc.timer_pending

    def test_defaults(self):
        acc = StrokeAccumulator()
        assert acc.inactivity_timeout == 1.5
        assert acc.min_points == 20

    def test_disabled_ignores_samples(self):
        async def scenario():
            acc = make_accumulator()
            acc.enabled = False
            assert acc.feed(drawing()) is False
            return acc

        acc = run(scenario())
        assert acc.state == StrokeState.IDLE
        assert acc.point_count == 0

    def test_first_point_starts_recording(self):
        async def scenario():
            acc = make_accumulator()
            assert acc.feed(drawing(0.2, 0.3))
            assert acc.state == StrokeState.RECORDING
            assert acc.points == ((0.2, 0.3),)
            assert acc.timer_pending
            acc.close()

        run(scenario())

    def test_non_drawing_samples_ignored(self):
        async def scenario():
            acc = make_accumulator()
            assert not acc.feed(GestureSample(finger_count=1, index_tip=(0.1, 0.1)))
            assert not acc.feed(GestureSample.neutral())
            assert not acc.feed(GestureSample(is_drawing_pose=True))
            return acc

        acc = run(scenario())
        assert acc.state == StrokeState.IDLE
        assert not acc.timer_pending

    def test_explicit_point_overrides_tip(self):
        async def scenario():
            acc = make_accumulator()
            acc.feed(drawing(0.5, 0.5), point=(320.0, 240.0))
            points = acc.points
            acc.close()
            return points

        assert run(scenario()) == ((320.0, 240.0),)

    def test_pause_keeps_stroke(self):
        # Relaxing the pose pauses the stroke without ending it
        async def scenario():
            acc = make_accumulator(inactivity_timeout=10)
            acc.feed(drawing(0.1, 0.1))
            acc.feed(GestureSample(finger_count=2, index_tip=(0.9, 0.9)))
            acc.feed(drawing(0.2, 0.2))
            points = acc.points
            acc.close()
            return points

        assert run(scenario()) == ((0.1, 0.1), (0.2, 0.2))


class TestInactivity:
    def test_short_stroke_discarded(self):
        spy = SpyDetector()
        results = []

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=0.05)
            acc.on_result(results.append)
            for s in circle_samples(5):
                acc.feed(s)
            await asyncio.sleep(0.2)
            return acc

        acc = run(scenario())
        assert spy.calls == []
        assert results == []
        assert acc.state == StrokeState.IDLE
        assert acc.point_count == 0

    def test_exactly_min_points_discarded(self):
        spy = SpyDetector()

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=0.05)
            for s in circle_samples(20):
                acc.feed(s)
            await asyncio.sleep(0.2)

        run(scenario())
        assert spy.calls == []

    def test_long_enough_stroke_classified(self):
        spy = SpyDetector(shape=Shape.SQUARE)
        results = []

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=0.05)
            acc.on_result(results.append)
            for s in circle_samples(21):
                acc.feed(s)
            await asyncio.sleep(0.2)
            return acc

        acc = run(scenario())
        assert len(spy.calls) == 1
        assert len(spy.calls[0]) == 21
        assert len(results) == 1
        assert isinstance(results[0], StrokeResult)
        assert results[0].shape == Shape.SQUARE
        assert results[0].point_count == 21
        assert acc.state == StrokeState.IDLE
        assert acc.point_count == 0

    def test_new_point_restarts_timer(self):
        spy = SpyDetector()

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=0.15)
            for s in circle_samples(30):
                acc.feed(s)
                await asyncio.sleep(0.01)
            # Total elapsed is twice the timeout but no gap exceeded it
            assert spy.calls == []
            assert acc.state == StrokeState.RECORDING
            await asyncio.sleep(0.3)

        run(scenario())
        assert len(spy.calls) == 1
        assert len(spy.calls[0]) == 30

    def test_real_detector_recognizes_circle(self):
        results = []

        async def scenario():
            acc = StrokeAccumulator(inactivity_timeout=0.05)
            acc.enabled = True
            acc.on_result(results.append)
            for s in circle_samples(120):
                acc.feed(s)
            await asyncio.sleep(0.2)

        run(scenario())
        assert [r.shape for r in results] == [Shape.CIRCLE]

    def test_expire_when_idle_is_noop(self):
        acc = make_accumulator()
        assert acc.expire() is None
        assert acc.state == StrokeState.IDLE


class TestClassificationGuard:
    def test_samples_ignored_while_classifying(self):
        fed_during = []

        async def scenario():
            acc = make_accumulator(inactivity_timeout=10)

            def listener(result):
                fed_during.append(acc.feed(drawing(0.9, 0.9)))
                fed_during.append(acc.submit())

            acc.on_result(listener)
            for s in circle_samples(25):
                acc.feed(s)
            acc.expire()
            return acc

        acc = run(scenario())
        assert fed_during == [False, None]
        assert acc.point_count == 0
        assert not acc.is_classifying

    def test_listener_error_releases_guard(self):
        async def scenario():
            acc = make_accumulator(inactivity_timeout=10)

            def broken(result):
                raise RuntimeError("boom")

            acc.on_result(broken)
            for s in circle_samples(25):
                acc.feed(s)
            result = acc.expire()
            assert result is not None
            assert not acc.is_classifying
            assert acc.feed(drawing())
            acc.close()

        run(scenario())

    def test_detector_error_releases_guard(self):
        class Exploding(ShapeDetector):
            def detect(self, points):
                raise RuntimeError("detector failed")

        acc = make_accumulator(detector=Exploding())
        acc._stroke = [(0.0, 0.0)] * 30
        with pytest.raises(RuntimeError):
            acc.submit()
        assert not acc.is_classifying

    def test_submit_empty_refused(self):
        acc = make_accumulator()
        assert acc.submit() is None

    def test_submit_discards_short_stroke(self):
        spy = SpyDetector()
        results = []

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=10)
            acc.on_result(results.append)
            for i in range(5):
                acc.feed(drawing(0.1 * i, 0.1))
            assert acc.submit() is None
            return acc

        acc = run(scenario())
        assert spy.calls == []
        assert results == []
        assert acc.state == StrokeState.IDLE
        assert acc.point_count == 0
        assert not acc.timer_pending

    def test_submit_min_points_boundary(self):
        spy = SpyDetector()

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=10)
            for s in circle_samples(20):
                acc.feed(s)
            assert acc.submit() is None
            for s in circle_samples(21):
                acc.feed(s)
            assert acc.submit() is not None

        run(scenario())
        assert [len(points) for points in spy.calls] == [21]

    def test_submitted_points_are_snapshot(self):
        spy = SpyDetector()

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=10)
            for s in circle_samples(25):
                acc.feed(s)
            acc.submit()
            acc.feed(drawing(0.0, 0.0))
            acc.close()

        run(scenario())
        assert isinstance(spy.calls[0], tuple)
        assert len(spy.calls[0]) == 25


class TestCancellation:
    def test_cancel_drops_stroke(self):
        spy = SpyDetector()

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=0.05)
            for s in circle_samples(30):
                acc.feed(s)
            acc.cancel()
            assert not acc.timer_pending
            await asyncio.sleep(0.2)
            return acc

        acc = run(scenario())
        assert spy.calls == []
        assert acc.state == StrokeState.IDLE

    def test_close_stops_everything(self):
        spy = SpyDetector()

        async def scenario():
            acc = make_accumulator(detector=spy, inactivity_timeout=0.05)
            for s in circle_samples(30):
                acc.feed(s)
            acc.close()
            assert not acc.feed(drawing())
            await asyncio.sleep(0.2)
            return acc

        acc = run(scenario())
        assert spy.calls == []
        assert not acc.enabled
        assert not acc.timer_pending
        assert acc.point_count == 0
