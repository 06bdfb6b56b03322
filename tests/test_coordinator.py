import threading
import time

import numpy as np
import pytest

from timeshaper.analysis.coordinator import AnalysisCoordinator, AnalysisEvent
from timeshaper.audio.audio_analyzer import AudioAnalyzer, AudioFeatureSet
from timeshaper.core.config import CoordinatorConfig
from timeshaper.core.exceptions import (
    AnalysisCancelledError,
    ContextUnavailableError,
    InternalAlgorithmError,
)
from timeshaper.core.media import AudioInput

TIMEOUT = 10


class RecordingCoordinator(AnalysisCoordinator):
    """Two sleeping sub-analyses per request; records when each ran."""

    name = "recording"

    def __init__(self, fail_stage=None, gate=None):
        super().__init__(CoordinatorConfig(max_workers=4))
        self.fail_stage = fail_stage
        self.gate = gate
        self.prepared = threading.Event()
        self.spans = []
        self._spans_lock = threading.Lock()

    def _prepare(self, request):
        self.prepared.set()
        if self.gate is not None:
            self.gate.wait(TIMEOUT)
        return request.media

    def _build_tasks(self, media):
        def task(stage):
            def run():
                start = time.monotonic()
                time.sleep(0.05)
                if stage == self.fail_stage:
                    raise ValueError(f"{stage} exploded")
                with self._spans_lock:
                    self.spans.append((media, start, time.monotonic()))
                return stage

            return run

        return {"first": task("first"), "second": task("second")}

    def _aggregate(self, media, results):
        return media, results


@pytest.fixture
def recorder():
    coordinators = []

    def make(**kwargs):
        coordinator = RecordingCoordinator(**kwargs)
        coordinators.append(coordinator)
        return coordinator

    yield make
    for coordinator in coordinators:
        coordinator.shutdown(wait=False)


def collect(coordinator):
    events = []
    coordinator.on("*", lambda event, payload: events.append((event, payload)))
    return events


class TestSingleFlightQueue:
    def test_result_is_aggregated(self, recorder):
        coordinator = recorder()
        assert coordinator.analyze("a").result(TIMEOUT) == ("a", {"first": "first", "second": "second"})

    def test_requests_never_overlap(self, recorder):
        coordinator = recorder()
        futures = [coordinator.analyze(name) for name in ("a", "b", "c")]
        for future in futures:
            future.result(TIMEOUT)

        def window(media):
            spans = [s for s in coordinator.spans if s[0] == media]
            return min(s[1] for s in spans), max(s[2] for s in spans)

        windows = [window(m) for m in ("a", "b", "c")]
        for (_, end), (start, _) in zip(windows, windows[1:]):
            assert start >= end

    def test_started_events_fire_in_call_order(self, recorder):
        coordinator = recorder()
        events = collect(coordinator)
        futures = [coordinator.analyze(name) for name in ("a", "b", "c")]
        for future in futures:
            future.result(TIMEOUT)

        started = [p["request_id"] for e, p in events if e == AnalysisEvent.STARTED.value]
        assert started == [1, 2, 3]
        kinds = [e for e, _ in events]
        assert kinds == ["analysis-started", "analysis-complete"] * 3

    def test_failure_fails_request_and_advances_queue(self, recorder):
        coordinator = recorder(fail_stage="second")
        events = collect(coordinator)
        failing = coordinator.analyze("a")

        with pytest.raises(InternalAlgorithmError):
            failing.result(TIMEOUT)

        errors = [p for e, p in events if e == "error"]
        assert errors[0]["stage"] == "second"
        assert isinstance(errors[0]["error"], InternalAlgorithmError)

        coordinator.fail_stage = None
        assert coordinator.analyze("b").result(TIMEOUT)[0] == "b"

    def test_pending_request_can_be_cancelled(self, recorder):
        gate = threading.Event()
        coordinator = recorder(gate=gate)
        events = collect(coordinator)

        first = coordinator.analyze("a")
        assert coordinator.prepared.wait(TIMEOUT)
        second = coordinator.analyze("b")
        third = coordinator.analyze("c")
        assert second.cancel()

        gate.set()
        assert first.result(TIMEOUT)[0] == "a"
        assert third.result(TIMEOUT)[0] == "c"
        assert second.cancelled()
        assert "b" not in {s[0] for s in coordinator.spans}
        started = [p["request_id"] for e, p in events if e == "analysis-started"]
        assert started == [1, 3]

    def test_cancel_current_is_cooperative(self, recorder):
        gate = threading.Event()
        coordinator = recorder(gate=gate)
        future = coordinator.analyze("a")
        assert coordinator.prepared.wait(TIMEOUT)

        assert coordinator.cancel_current()
        gate.set()
        with pytest.raises(AnalysisCancelledError):
            future.result(TIMEOUT)
        assert coordinator.spans == []

    def test_shutdown_rejects_new_requests(self, recorder):
        coordinator = recorder()
        coordinator.shutdown()
        with pytest.raises(ContextUnavailableError):
            coordinator.analyze("a")
        assert coordinator.health()["closed"] is True


class TestEvents:
    def test_failing_listener_does_not_break_analysis(self, recorder):
        coordinator = recorder()

        def broken(event, payload):
            raise RuntimeError("listener bug")

        coordinator.on("analysis-started", broken)
        assert coordinator.analyze("a").result(TIMEOUT)[0] == "a"

    def test_off_removes_listener(self, recorder):
        coordinator = recorder()
        seen = []

        def listener(event, payload):
            seen.append(event)

        coordinator.on(AnalysisEvent.COMPLETE, listener)
        coordinator.off(AnalysisEvent.COMPLETE, listener)
        coordinator.analyze("a").result(TIMEOUT)
        assert seen == []
        assert coordinator.listener_count == 0

    def test_complete_event_carries_result(self, recorder):
        coordinator = recorder()
        results = []
        coordinator.on("analysis-complete", lambda event, payload: results.append(payload["result"]))
        value = coordinator.analyze("a").result(TIMEOUT)
        assert results == [value]


class TestAudioAnalyzer:
    def test_silent_audio(self, engine_config):
        audio = AudioInput(np.zeros(8000 * 2, dtype=np.float32), 8000)
        with AudioAnalyzer(engine_config) as analyzer:
            result = analyzer.analyze(audio).result(TIMEOUT)

        assert isinstance(result, AudioFeatureSet)
        assert (result.bpm, result.confidence) == (120, 0.0)
        assert result.mood.category == "calm"
        assert result.duration == pytest.approx(2.0)
        assert len(result.energy_curve) == len(result.segments)
        assert all(e == 0.0 for e in result.energy_curve)

    def test_click_track(self, engine_config):
        sr = 10240
        y = np.zeros(13 * 5120, dtype=np.float32)
        for k in range(1, 13):
            y[k * 5120 + 256] = 1.0
        with AudioAnalyzer(engine_config) as analyzer:
            result = analyzer.analyze(AudioInput(y, sr)).result(TIMEOUT)
        assert result.bpm == 120
        assert result.confidence > 0.8
        assert result.to_dict()["bpm"] == 120

    def test_invalid_input_reports_prepare_stage(self, engine_config):
        with AudioAnalyzer(engine_config) as analyzer:
            errors = []
            analyzer.on("error", lambda event, payload: errors.append(payload["stage"]))
            with pytest.raises(TypeError):
                analyzer.analyze(42).result(TIMEOUT)
        assert errors == ["prepare"]
