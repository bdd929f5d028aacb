#!/usr/bin/env python3
"""
Per-Object Point-Cloud Reconstruction

Fuses a depth stream with a segmentation-mask stream into one bounded,
uniformly sampled point cloud and oriented bounding box per object:
- segmentation frames are buffered until a depth frame matches them
- matched pairs are unprojected into world space
- points land in per-object reservoirs
- finalize summarizes and exports every object

The engine is not thread-safe. enqueue, process and reset must be called
from a single producer; finalize only reads accumulator state and may run
on another thread once capture has stopped.
"""

import logging
import numpy as np
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from object_recon.types import (
    DepthFrame,
    ObjectId,
    ReconstructionOutput,
    SegmentationFrame
)
from object_recon.reservoir import ObjectAccumulator, DEFAULT_MAX_SAMPLES
from object_recon.synchronizer import FrameSynchronizer, DEFAULT_TIMESTAMP_TOLERANCE
from object_recon.unprojector import PointUnprojector, DEFAULT_MASK_THRESHOLD
from object_recon.exporter import export

logger = logging.getLogger(__name__)


class ObjectPointCloudReconstructor:
    """Incremental per-object point-cloud reconstruction for one capture session"""

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        index_path: Optional[Path] = None,
        timestamp_tolerance: float = DEFAULT_TIMESTAMP_TOLERANCE,
        mask_threshold: int = DEFAULT_MASK_THRESHOLD,
        max_samples_per_object: int = DEFAULT_MAX_SAMPLES,
        rng: Optional[np.random.Generator] = None
    ):
        if max_samples_per_object <= 0:
            raise ValueError(f"max_samples_per_object must be positive, got {max_samples_per_object}")

        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.index_path = Path(index_path) if index_path is not None else None

        self._accumulators: Dict[ObjectId, ObjectAccumulator] = {}
        self._unprojector = PointUnprojector(
            mask_threshold=mask_threshold,
            max_samples_per_object=max_samples_per_object,
            rng=rng
        )
        self._synchronizer = FrameSynchronizer(
            on_match=self._on_match,
            tolerance=timestamp_tolerance
        )

        self.depth_frames_processed = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any]):
        """Build an engine from a loaded configuration dict"""
        recon = config['reconstruction']
        output = config['output']

        seed = recon.get('seed')
        output_dir = Path(output['output_dir'])

        return cls(
            output_dir=output_dir,
            index_path=output_dir / output['index_file'],
            timestamp_tolerance=recon['timestamp_tolerance'],
            mask_threshold=recon['mask_threshold'],
            max_samples_per_object=recon['max_samples_per_object'],
            rng=np.random.default_rng(seed)
        )

    @property
    def accumulators(self) -> Mapping[ObjectId, ObjectAccumulator]:
        """Read-only view of the per-object reservoirs"""
        return MappingProxyType(self._accumulators)

    @property
    def pending_segmentation_count(self) -> int:
        return self._synchronizer.pending_count

    def reset(self):
        """Discard all accumulators and buffered segmentation frames"""
        self._synchronizer.clear()
        self._accumulators.clear()
        self.depth_frames_processed = 0
        logger.debug("Reconstruction state reset")

    def enqueue(self, frame: SegmentationFrame):
        """Buffer a segmentation frame until a depth frame matches it"""
        self._synchronizer.enqueue(frame)

    def process(self, frame: DepthFrame) -> int:
        """
        Match a depth frame against buffered segmentation frames

        Returns:
            Number of segmentation frames fused with this depth frame
        """
        if frame.depth_map is None:
            return 0

        self.depth_frames_processed += 1
        return self._synchronizer.process(frame)

    def _on_match(self, segmentation: SegmentationFrame, frame: DepthFrame):
        count = self._unprojector.unproject(segmentation, frame, self._accumulators)
        logger.debug(
            f"Fused segmentation t={segmentation.timestamp:.3f} with depth "
            f"t={frame.timestamp:.3f}: {count} points"
        )

    def finalize(
        self,
        output_dir: Optional[Path] = None,
        index_path: Optional[Path] = None,
        show_progress: bool = False
    ) -> Optional[ReconstructionOutput]:
        """
        Summarize and export every accumulated object

        Args:
            output_dir: Directory for per-object point clouds
            index_path: JSON index file

        Returns:
            ReconstructionOutput, or None if no reconstruction was produced
        """
        output_dir = Path(output_dir) if output_dir is not None else self.output_dir
        index_path = Path(index_path) if index_path is not None else self.index_path

        if output_dir is None or index_path is None:
            raise ValueError("finalize requires output_dir and index_path")

        logger.info(
            f"Finalizing {len(self._accumulators)} objects "
            f"({self._synchronizer.matched_count} matched, "
            f"{self._synchronizer.expired_count} expired segmentation frames, "
            f"{self.depth_frames_processed} depth frames)"
        )

        return export(
            self._accumulators.values(),
            output_dir,
            index_path,
            show_progress=show_progress
        )
