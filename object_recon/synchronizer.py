#!/usr/bin/env python3
"""
Timestamp matching between segmentation frames and depth frames
"""

import logging
from typing import Callable, List

from object_recon.types import DepthFrame, SegmentationFrame

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_TOLERANCE = 1.0 / 15.0

MatchHandler = Callable[[SegmentationFrame, DepthFrame], None]


class FrameSynchronizer:
    """
    Queue of pending segmentation frames, matched against depth frames

    A segmentation frame is dispatched to ``on_match`` together with the
    first depth frame whose timestamp lies within ``tolerance`` of its own.
    Frames that fall behind the window without a match are dropped.
    """

    def __init__(
        self,
        on_match: MatchHandler,
        tolerance: float = DEFAULT_TIMESTAMP_TOLERANCE
    ):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")

        self.on_match = on_match
        self.tolerance = float(tolerance)
        self._pending: List[SegmentationFrame] = []

        self.matched_count = 0
        self.expired_count = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> List[SegmentationFrame]:
        return list(self._pending)

    def enqueue(self, frame: SegmentationFrame):
        """Buffer a segmentation frame, keeping the queue sorted by timestamp"""
        if not frame.masks:
            return

        self._pending.append(frame)
        self._pending.sort(key=lambda f: f.timestamp)

    def process(self, depth_frame: DepthFrame) -> int:
        """
        Match pending segmentation frames against one depth frame

        Returns:
            Number of segmentation frames dispatched
        """
        if not self._pending:
            return 0

        timestamp = depth_frame.timestamp
        window_start = timestamp - self.tolerance
        window_end = timestamp + self.tolerance

        matched = 0
        while self._pending:
            if self._pending[0].timestamp > window_end:
                break

            # Dequeued before dispatch; a handler error never re-matches it
            segmentation = self._pending.pop(0)
            if segmentation.timestamp < window_start:
                self.expired_count += 1
                logger.debug(f"Dropping unmatched segmentation frame at t={segmentation.timestamp:.3f}")
                continue

            self.matched_count += 1
            matched += 1
            self.on_match(segmentation, depth_frame)

        return matched

    def clear(self):
        """Discard all pending frames and counters"""
        self._pending.clear()
        self.matched_count = 0
        self.expired_count = 0
