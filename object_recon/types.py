#!/usr/bin/env python3
"""
Data containers exchanged between the capture host and the engine
"""

import uuid
import numpy as np
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

ObjectId = Union[uuid.UUID, str]


@dataclass
class SegmentationMask:
    """One object's spatial extent within one video frame"""
    identifier: ObjectId
    mask: np.ndarray  # [H, W] uint8 or bool, any resolution
    confidence: float = 1.0
    label: Optional[str] = None


@dataclass
class SegmentationFrame:
    """All masks produced by the segmentation source for one timestamp"""
    timestamp: float
    masks: List[SegmentationMask] = field(default_factory=list)


@dataclass
class DepthFrame:
    """Depth sample with camera calibration and pose"""
    timestamp: float
    depth_map: Optional[np.ndarray]  # [H, W] float32 meters
    intrinsics: np.ndarray  # [3, 3]
    camera_to_world: np.ndarray  # [4, 4]
    confidence_map: Optional[np.ndarray] = None  # [H, W] uint8, levels 0..2
    image_resolution: Optional[Tuple[int, int]] = None  # (width, height) the intrinsics refer to


@dataclass(frozen=True)
class BoundingBox:
    """Oriented bounding box"""
    center: List[float]
    extents: List[float]
    axes: List[List[float]]  # three unit axes, right-handed
    orientation_quaternion: List[float]  # [x, y, z, w]

    def to_dict(self) -> Dict:
        return {
            'center': self.center,
            'extents': self.extents,
            'axes': self.axes,
            'orientationQuaternion': self.orientation_quaternion,
        }

    @classmethod
    def from_dict(cls, data: Dict):
        return cls(
            center=list(data['center']),
            extents=list(data['extents']),
            axes=[list(axis) for axis in data['axes']],
            orientation_quaternion=list(data['orientationQuaternion'])
        )


@dataclass(frozen=True)
class ObjectSummary:
    """Reconstruction result for one object"""
    id: str
    label: Optional[str]
    point_count: int
    centroid: List[float]
    average_confidence: Optional[float]
    bounding_box: BoundingBox
    point_cloud_file: str  # relative to the output directory

    def to_dict(self) -> Dict:
        """Convert to JSON-serializable dict"""
        return {
            'id': self.id,
            'label': self.label,
            'pointCount': self.point_count,
            'centroid': self.centroid,
            'averageConfidence': self.average_confidence,
            'boundingBox': self.bounding_box.to_dict(),
            'pointCloudFile': self.point_cloud_file,
        }

    @classmethod
    def from_dict(cls, data: Dict):
        """Load from dictionary"""
        return cls(
            id=data['id'],
            label=data.get('label'),
            point_count=data['pointCount'],
            centroid=list(data['centroid']),
            average_confidence=data.get('averageConfidence'),
            bounding_box=BoundingBox.from_dict(data['boundingBox']),
            point_cloud_file=data['pointCloudFile']
        )


@dataclass
class ReconstructionOutput:
    """What finalize hands back to the host"""
    index_path: Path
    object_count: int
    summaries: List[ObjectSummary]
