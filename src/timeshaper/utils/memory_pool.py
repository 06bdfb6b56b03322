"""
Ring Buffer für Feature-Frames

Bounded, vorab allokierter Kanal zwischen Echtzeit-Pfad und Control-Kontext.

Features:
- Pre-allocated NumPy Arena (keine Allokation pro Push)
- Thread-safe Push/Pop
- Backpressure-Policy: drop-oldest (ältester Eintrag wird überschrieben)
- Statistik über verworfene Einträge
"""

import logging
import threading
from collections.abc import Sequence

import numpy as np

logger = logging.getLogger(__name__)


class FeatureRingBuffer:
    """
    Thread-safe Ring Buffer fester Kapazität für numerische Feature-Zeilen.

    Usage:
        ring = FeatureRingBuffer(capacity=256, width=5)
        ring.push((0.1, 0.0, 12.5, 0.0, 0.046))
        rows = ring.drain()  # ndarray (n, 5), älteste zuerst
    """

    def __init__(self, capacity: int, width: int, dtype=np.float64):
        """
        Args:
            capacity: Maximale Anzahl Zeilen
            width: Anzahl Werte pro Zeile
            dtype: NumPy dtype der Arena
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.width = width
        self._arena = np.zeros((capacity, width), dtype=dtype)
        self._head = 0  # Index des ältesten Eintrags
        self._size = 0
        self._lock = threading.Lock()

        # Stats
        self.total_pushed = 0
        self.dropped = 0

        logger.debug(f"FeatureRingBuffer initialized: capacity={capacity}, width={width}")

    def push(self, row: Sequence[float]) -> bool:
        """
        Fügt eine Zeile hinzu.

        Returns:
            False, wenn dabei der älteste Eintrag verworfen wurde
        """
        with self._lock:
            tail = (self._head + self._size) % self.capacity
            self._arena[tail] = row
            self.total_pushed += 1
            if self._size < self.capacity:
                self._size += 1
                return True
            # Voll: ältesten Eintrag überschreiben
            self._head = (self._head + 1) % self.capacity
            self.dropped += 1
            return False

    def pop(self) -> np.ndarray | None:
        """Entnimmt die älteste Zeile (Kopie) oder None, wenn leer."""
        with self._lock:
            if self._size == 0:
                return None
            row = self._arena[self._head].copy()
            self._head = (self._head + 1) % self.capacity
            self._size -= 1
            return row

    def drain(self) -> np.ndarray:
        """Entnimmt alle Zeilen in FIFO-Reihenfolge."""
        with self._lock:
            indices = (self._head + np.arange(self._size)) % self.capacity
            rows = self._arena[indices].copy()
            self._head = 0
            self._size = 0
            return rows

    def resize(self, capacity: int) -> int:
        """
        Ändert die Kapazität unter Beibehaltung wartender Zeilen.

        Passen nicht alle wartenden Zeilen in die neue Arena, bleiben die
        neuesten erhalten; die übrigen zählen als verworfen.

        Returns:
            Anzahl der dabei verworfenen Zeilen
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        with self._lock:
            indices = (self._head + np.arange(self._size)) % self.capacity
            rows = self._arena[indices]
            overflow = max(len(rows) - capacity, 0)
            rows = rows[overflow:]

            self._arena = np.zeros((capacity, self.width), dtype=self._arena.dtype)
            self._arena[: len(rows)] = rows
            self.capacity = capacity
            self._head = 0
            self._size = len(rows)
            self.dropped += overflow

        logger.debug(f"FeatureRingBuffer resized: capacity={capacity}, dropped={overflow}")
        return overflow

    def clear(self) -> None:
        with self._lock:
            self._head = 0
            self._size = 0

    def __len__(self) -> int:
        with self._lock:
            return self._size

    def get_stats(self) -> dict:
        """
        Gibt Buffer-Statistiken zurück.

        Returns:
            Dict mit capacity, size, total_pushed, dropped
        """
        with self._lock:
            return {
                "capacity": self.capacity,
                "size": self._size,
                "total_pushed": self.total_pushed,
                "dropped": self.dropped,
            }
