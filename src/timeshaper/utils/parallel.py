"""
Parallel Processing Utilities für TimeShaper

Thread Pool Helfer für die Sub-Analysen einer Anfrage: alle Tasks lesen
dieselben, unveränderlichen Eingabedaten und laufen gleichzeitig; der erste
Fehler bricht die übrigen ab (fail-fast).
"""

import logging
import os
from collections.abc import Callable, Mapping
from concurrent.futures import FIRST_EXCEPTION, Executor, Future, wait
from typing import Any

logger = logging.getLogger(__name__)


def get_optimal_worker_count(task_type: str = "cpu") -> int:
    """
    Ermittelt optimale Anzahl Worker basierend auf Task-Typ.

    Args:
        task_type: "cpu" für CPU-bound, "io" für I/O-bound Tasks

    Returns:
        Optimale Anzahl Worker
    """
    cpu_count = os.cpu_count() or 4

    if task_type == "io":
        return min(cpu_count * 2, 32)
    elif task_type == "cpu":
        return max(cpu_count - 1, 1)
    else:
        return cpu_count


class SubAnalysisError(Exception):
    """Trägt den Namen der fehlgeschlagenen Sub-Analyse zur Ursache."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause


def run_concurrently(tasks: Mapping[str, Callable[[], Any]], executor: Executor) -> dict[str, Any]:
    """
    Führt benannte Tasks parallel aus und sammelt ihre Ergebnisse.

    Args:
        tasks: Name -> parameterlose Funktion
        executor: Executor für die Ausführung

    Returns:
        Name -> Ergebnis, in der Reihenfolge von ``tasks``

    Raises:
        SubAnalysisError: beim ersten fehlgeschlagenen Task; noch nicht
            gestartete Tasks werden abgebrochen
    """
    futures: dict[str, Future] = {name: executor.submit(fn) for name, fn in tasks.items()}
    done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)

    for name, future in futures.items():
        if future in done and future.exception() is not None:
            for other in pending:
                other.cancel()
            # Laufende Tasks abwarten, damit keine Arbeit die Anfrage überlebt
            wait(pending)
            logger.debug(f"Sub-analysis '{name}' failed, cancelled {len(pending)} pending task(s)")
            raise SubAnalysisError(name, future.exception())

    return {name: future.result() for name, future in futures.items()}
