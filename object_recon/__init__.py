"""
Per-Object Point-Cloud Reconstruction

Fuses depth and segmentation streams into per-object point clouds:
- Timestamp synchronization of segmentation and depth frames
- Depth unprojection into world space
- Bounded reservoir sampling per object
- Oriented bounding boxes and PLY/JSON export
"""

from .types import (
    SegmentationMask,
    SegmentationFrame,
    DepthFrame,
    BoundingBox,
    ObjectSummary,
    ReconstructionOutput,
)
from .reservoir import ObjectAccumulator
from .mask_resampler import resample_mask, UnsupportedMaskFormatError
from .synchronizer import FrameSynchronizer
from .unprojector import PointUnprojector
from .summarizer import summarize
from .exporter import export
from .reconstructor import ObjectPointCloudReconstructor

__all__ = [
    'SegmentationMask',
    'SegmentationFrame',
    'DepthFrame',
    'BoundingBox',
    'ObjectSummary',
    'ReconstructionOutput',
    'ObjectAccumulator',
    'resample_mask',
    'UnsupportedMaskFormatError',
    'FrameSynchronizer',
    'PointUnprojector',
    'summarize',
    'export',
    'ObjectPointCloudReconstructor',
]
