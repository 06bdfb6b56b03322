"""
Analysis Coordinator - Single-Flight Queue pro Medien-Modalität.

Jede Instanz verarbeitet genau eine Anfrage gleichzeitig (ein Worker-Thread
konsumiert eine FIFO-Queue). Die unabhängigen Sub-Analysen einer Anfrage
laufen parallel in einem Thread Pool; der erste Fehler bricht die Anfrage ab
(fail-fast), danach wird die nächste Anfrage gestartet.

Lifecycle Events:
    analysis-started   {"request_id"}
    frame-extracted    {"frame", "total"}   (nur Video)
    analysis-complete  {"request_id", "result"}
    error              {"request_id", "error", "stage"}

Usage:
    analyzer = AudioAnalyzer()
    analyzer.on("analysis-complete", lambda event, payload: print(payload["result"]))
    future = analyzer.analyze(AudioInput(samples, 44100))
    result = future.result()
"""

import itertools
import logging
import queue
import threading
from collections import defaultdict
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.config import CoordinatorConfig
from ..core.exceptions import (
    AnalysisCancelledError,
    ContextUnavailableError,
    InternalAlgorithmError,
    handle_errors,
)
from ..utils.logger import get_logger
from ..utils.parallel import SubAnalysisError, get_optimal_worker_count, run_concurrently

logger = get_logger()

EventListener = Callable[[str, dict], None]
WILDCARD = "*"


class AnalysisEvent(str, Enum):
    STARTED = "analysis-started"
    FRAME_EXTRACTED = "frame-extracted"
    COMPLETE = "analysis-complete"
    ERROR = "error"


class EventEmitter:
    """Callback-Registry mit Wildcard ("*" empfängt alle Events)."""

    def __init__(self):
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)
        self._listener_lock = threading.Lock()

    def on(self, event: str, listener: EventListener) -> None:
        with self._listener_lock:
            self._listeners[str(getattr(event, "value", event))].append(listener)

    def off(self, event: str, listener: EventListener | None = None) -> None:
        """Entfernt einen Listener (oder alle Listener eines Events)."""
        key = str(getattr(event, "value", event))
        with self._listener_lock:
            if listener is None:
                self._listeners.pop(key, None)
            elif listener in self._listeners.get(key, []):
                self._listeners[key].remove(listener)

    def emit(self, event: str, payload: dict | None = None) -> None:
        key = str(getattr(event, "value", event))
        payload = payload or {}
        with self._listener_lock:
            listeners = list(self._listeners.get(key, [])) + list(
                self._listeners.get(WILDCARD, [])
            )
        for listener in listeners:
            try:
                listener(key, payload)
            except Exception as e:
                logger.warning(f"Listener for '{key}' failed (ignored): {e}", exc_info=True)

    @property
    def listener_count(self) -> int:
        with self._listener_lock:
            return sum(len(v) for v in self._listeners.values())


@dataclass
class AnalysisRequest:
    request_id: int
    media: Any
    future: Future = field(default_factory=Future)
    cancel_event: threading.Event = field(default_factory=threading.Event)


class AnalysisCoordinator(EventEmitter):
    """
    Basisklasse der Modalitäts-Koordinatoren.

    Subklassen implementieren:
        _prepare(request)             -> vorbereitete, unveränderliche Daten
        _build_tasks(prepared)        -> {stage: callable}
        _aggregate(prepared, results) -> Ergebnisobjekt
    """

    name = "analysis"

    def __init__(self, config: CoordinatorConfig | None = None):
        super().__init__()
        self.config = config or CoordinatorConfig()
        self._queue: queue.Queue = queue.Queue()
        self._ids = itertools.count(1)
        self._state_lock = threading.Lock()
        self._current: AnalysisRequest | None = None
        self._closed = False
        self._worker: threading.Thread | None = None
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers or get_optimal_worker_count("cpu"),
            thread_name_prefix=f"{self.name}-sub",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, media) -> Future:
        """
        Reiht eine Analyse-Anfrage ein.

        Args:
            media: Modalitäts-spezifische Eingabe

        Returns:
            Future mit dem Ergebnis; ``future.cancel()`` verwirft eine noch
            nicht gestartete Anfrage

        Raises:
            ContextUnavailableError: Coordinator wurde bereits beendet
        """
        with self._state_lock:
            if self._closed:
                raise ContextUnavailableError(f"{self.name} coordinator has been shut down")
            request = AnalysisRequest(request_id=next(self._ids), media=media)
            self._ensure_worker()
            self._queue.put(request)
        logger.debug(f"[{self.name}] queued request {request.request_id}")
        return request.future

    def cancel_current(self) -> bool:
        """Setzt das kooperative Abbruch-Signal der laufenden Anfrage."""
        with self._state_lock:
            current = self._current
        if current is None:
            return False
        current.cancel_event.set()
        return True

    @property
    def is_processing(self) -> bool:
        with self._state_lock:
            return self._current is not None

    def health(self) -> dict:
        return {
            "name": self.name,
            "started": self._worker is not None and self._worker.is_alive(),
            "closed": self._closed,
            "queue_depth": self._queue.qsize(),
            "processing": self.is_processing,
            "listeners": self.listener_count,
        }

    def shutdown(self, wait: bool = True) -> None:
        """
        Beendet den Worker; wartende Anfragen werden abgebrochen.

        Args:
            wait: Auf das Ende der laufenden Anfrage warten
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker

        dropped = 0
        while True:
            try:
                pending = self._queue.get_nowait()
            except queue.Empty:
                break
            if pending.future.cancel():
                dropped += 1
            self._queue.task_done()

        self._queue.put(None)
        if wait and worker is not None:
            worker.join()
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.info(f"[{self.name}] coordinator shut down ({dropped} pending request(s) cancelled)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _ensure_worker(self) -> None:
        if self._worker is None:
            self._worker = threading.Thread(
                target=self._run_worker, name=f"{self.name}-coordinator", daemon=True
            )
            self._worker.start()

    def _run_worker(self) -> None:
        while True:
            request = self._queue.get()
            try:
                if request is None:
                    return
                if not request.future.set_running_or_notify_cancel():
                    logger.debug(f"[{self.name}] request {request.request_id} cancelled before start")
                    continue
                with self._state_lock:
                    self._current = request
                self._process(request)
            finally:
                with self._state_lock:
                    self._current = None
                self._queue.task_done()

    def _process(self, request: AnalysisRequest) -> None:
        rid = request.request_id
        self.emit(AnalysisEvent.STARTED, {"request_id": rid})
        logger.info(f"[{self.name}] analysis {rid} started")

        stage = "prepare"
        try:
            prepared = self._prepare(request)
            self.check_cancelled(request, stage)

            stage = "analyze"
            tasks = {
                name: self._guard(request, name, fn)
                for name, fn in self._build_tasks(prepared).items()
            }
            results = run_concurrently(tasks, self._executor)
            self.check_cancelled(request, stage)

            stage = "aggregate"
            result = self._aggregate(prepared, results)
        except SubAnalysisError as e:
            self._fail(request, e.cause, e.stage)
            return
        except Exception as e:
            self._fail(request, e, stage)
            return

        logger.info(f"[{self.name}] analysis {rid} complete")
        self.emit(AnalysisEvent.COMPLETE, {"request_id": rid, "result": result})
        request.future.set_result(result)

    def _fail(self, request: AnalysisRequest, error: BaseException, stage: str) -> None:
        if isinstance(error, AnalysisCancelledError):
            logger.info(f"[{self.name}] analysis {request.request_id} cancelled during {stage}")
        else:
            logger.error(
                f"[{self.name}] analysis {request.request_id} failed in {stage}: {error}",
                exc_info=error,
            )
        self.emit(
            AnalysisEvent.ERROR, {"request_id": request.request_id, "error": error, "stage": stage}
        )
        request.future.set_exception(error)

    def _guard(self, request: AnalysisRequest, stage: str, fn: Callable[[], Any]) -> Callable[[], Any]:
        """Sub-Analyse mit Abbruch-Prüfung; fremde Exceptions als InternalAlgorithmError."""

        def run_stage():
            self.check_cancelled(request, stage)
            return fn()

        run_stage.__name__ = f"{self.name}_{stage}"
        return handle_errors(wrap_as=InternalAlgorithmError, reraise=True, log_level=logging.DEBUG)(
            run_stage
        )

    @staticmethod
    def check_cancelled(request: AnalysisRequest, stage: str) -> None:
        if request.cancel_event.is_set():
            raise AnalysisCancelledError(
                f"Analysis {request.request_id} cancelled", details={"stage": stage}
            )

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _prepare(self, request: AnalysisRequest):
        return request.media

    def _build_tasks(self, prepared) -> dict[str, Callable[[], Any]]:
        raise NotImplementedError

    def _aggregate(self, prepared, results: dict[str, Any]):
        raise NotImplementedError
