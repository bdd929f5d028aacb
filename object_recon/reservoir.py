#!/usr/bin/env python3
"""
Bounded per-object point reservoir

Keeps a uniform random sample of at most ``max_capacity`` points out of an
unbounded stream (Algorithm R). Every point seen so far is retained with
probability ``max_capacity / total_samples_seen``.
"""

import numpy as np
from typing import Optional

from object_recon.types import ObjectId

DEFAULT_MAX_SAMPLES = 200_000

_INITIAL_ALLOCATION = 1024


class ObjectAccumulator:
    """Reservoir of world-space points and encoded confidences for one object"""

    def __init__(
        self,
        identifier: ObjectId,
        label: Optional[str] = None,
        max_capacity: int = DEFAULT_MAX_SAMPLES,
        rng: Optional[np.random.Generator] = None
    ):
        if max_capacity <= 0:
            raise ValueError(f"max_capacity must be positive, got {max_capacity}")

        self.identifier = identifier
        self.label = label
        self.max_capacity = int(max_capacity)
        self.total_samples_seen = 0
        self.rng = rng if rng is not None else np.random.default_rng()

        # Storage grows geometrically up to max_capacity
        allocation = min(_INITIAL_ALLOCATION, self.max_capacity)
        self._points = np.empty((allocation, 3), dtype=np.float32)
        self._confidences = np.empty(allocation, dtype=np.uint8)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def points(self) -> np.ndarray:
        """[n, 3] retained points (view, do not mutate)"""
        return self._points[:self._size]

    @property
    def confidences(self) -> np.ndarray:
        """[n] retained confidences 0-255 (view, do not mutate)"""
        return self._confidences[:self._size]

    @property
    def is_full(self) -> bool:
        return self._size >= self.max_capacity

    def _reserve(self, required: int):
        capacity = len(self._points)
        if required <= capacity:
            return

        new_capacity = min(self.max_capacity, max(required, capacity * 2))
        points = np.empty((new_capacity, 3), dtype=np.float32)
        confidences = np.empty(new_capacity, dtype=np.uint8)
        points[:self._size] = self._points[:self._size]
        confidences[:self._size] = self._confidences[:self._size]
        self._points = points
        self._confidences = confidences

    def append(self, point, confidence: int):
        """Offer one sample to the reservoir"""
        self.total_samples_seen += 1

        if self._size < self.max_capacity:
            self._reserve(self._size + 1)
            self._points[self._size] = point
            self._confidences[self._size] = confidence
            self._size += 1
            return

        replace_index = int(self.rng.integers(0, self.total_samples_seen))
        if replace_index < self.max_capacity:
            self._points[replace_index] = point
            self._confidences[replace_index] = confidence

    def extend(self, points: np.ndarray, confidences: np.ndarray):
        """
        Offer a batch of samples, equivalent to calling append for each in order

        Args:
            points: [N, 3] world-space points
            confidences: [N] encoded confidences 0-255
        """
        points = np.asarray(points, dtype=np.float32).reshape(-1, 3)
        confidences = np.asarray(confidences, dtype=np.uint8).reshape(-1)
        if len(points) != len(confidences):
            raise ValueError(
                f"points and confidences differ in length: {len(points)} vs {len(confidences)}"
            )

        count = len(points)
        if count == 0:
            return

        # Fill phase: unconditional retention
        fill = min(count, self.max_capacity - self._size)
        if fill > 0:
            self._reserve(self._size + fill)
            self._points[self._size:self._size + fill] = points[:fill]
            self._confidences[self._size:self._size + fill] = confidences[:fill]
            self._size += fill

        first_seen = self.total_samples_seen
        self.total_samples_seen += count

        remaining = count - fill
        if remaining == 0:
            return

        # Replacement phase: sample k (1-based position in the stream) draws from [0, k)
        stream_positions = np.arange(
            first_seen + fill + 1, first_seen + count + 1, dtype=np.int64
        )
        draws = self.rng.integers(0, stream_positions)
        accepted = np.nonzero(draws < self.max_capacity)[0]
        if len(accepted) == 0:
            return

        slots = draws[accepted]
        sources = accepted + fill

        # Later samples overwrite earlier ones that drew the same slot
        reversed_slots = slots[::-1]
        unique_slots, first_in_reversed = np.unique(reversed_slots, return_index=True)
        last_sources = sources[::-1][first_in_reversed]

        self._points[unique_slots] = points[last_sources]
        self._confidences[unique_slots] = confidences[last_sources]
