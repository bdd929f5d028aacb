#!/usr/bin/env python3
"""
Depth + mask fusion into per-object world-space points

For every masked depth pixel of a synchronized frame pair:
- scale the pixel centre into the intrinsics' resolution
- unproject with K^-1 and the depth value
- move the camera-space point into world space
- combine depth and mask confidence into one 8-bit score
- feed the point into that object's reservoir
"""

import logging
import cv2
import numpy as np
from typing import MutableMapping, Optional, Tuple

from recon_utils.camera_utils import pixel_rays, camera_to_world
from object_recon.types import DepthFrame, ObjectId, SegmentationFrame
from object_recon.reservoir import ObjectAccumulator, DEFAULT_MAX_SAMPLES
from object_recon.mask_resampler import resample_mask, UnsupportedMaskFormatError

logger = logging.getLogger(__name__)

DEFAULT_MASK_THRESHOLD = 1

# Depth confidence maps use discrete levels 0 (low) .. 2 (high)
MAX_DEPTH_CONFIDENCE_LEVEL = 2.0


def encode_confidence(combined: np.ndarray) -> np.ndarray:
    """Map confidence in [0, 1] to 0-255, rounding halves up"""
    combined = np.clip(combined, 0.0, 1.0)
    return np.floor(combined * 255.0 + 0.5).astype(np.uint8)


def depth_confidence(confidence_map: Optional[np.ndarray], shape: Tuple[int, int]) -> np.ndarray:
    """
    Per-pixel depth confidence in [0, 1]

    Args:
        confidence_map: [H, W] discrete levels or None; any other shape is ignored
        shape: (height, width) of the depth map

    Returns:
        confidence: [H, W] float32; all ones without a confidence map
    """
    if confidence_map is None:
        return np.ones(shape, dtype=np.float32)

    levels = np.asarray(confidence_map)
    if levels.ndim != 2 or levels.size == 0:
        logger.warning(f"Ignoring depth confidence map of shape {levels.shape}")
        return np.ones(shape, dtype=np.float32)

    if levels.shape != shape:
        levels = cv2.resize(
            np.ascontiguousarray(levels.astype(np.uint8)),
            (shape[1], shape[0]),
            interpolation=cv2.INTER_NEAREST
        )

    return levels.astype(np.float32) / MAX_DEPTH_CONFIDENCE_LEVEL


class PointUnprojector:
    """Turns matched segmentation/depth pairs into reservoir samples"""

    def __init__(
        self,
        mask_threshold: int = DEFAULT_MASK_THRESHOLD,
        max_samples_per_object: int = DEFAULT_MAX_SAMPLES,
        rng: Optional[np.random.Generator] = None
    ):
        self.mask_threshold = int(mask_threshold)
        self.max_samples_per_object = int(max_samples_per_object)
        self.rng = rng if rng is not None else np.random.default_rng()

        # Reused across frames while resolution and calibration are unchanged
        self._ray_key = None
        self._rays: Optional[np.ndarray] = None
        self._mask_buffer: Optional[np.ndarray] = None

    def _rays_for(self, frame: DepthFrame, width: int, height: int) -> np.ndarray:
        if frame.image_resolution is not None:
            ref_width, ref_height = frame.image_resolution
        else:
            ref_width, ref_height = width, height

        scale_x = float(ref_width) / float(width)
        scale_y = float(ref_height) / float(height)

        intrinsics = np.asarray(frame.intrinsics, dtype=np.float64)
        key = (width, height, scale_x, scale_y, intrinsics.tobytes())
        if key != self._ray_key:
            self._rays = pixel_rays(intrinsics, width, height, scale_x, scale_y)
            self._ray_key = key
            logger.debug(f"Rebuilt pixel ray grid for {width}x{height} depth map")

        return self._rays

    def unproject(
        self,
        segmentation: SegmentationFrame,
        frame: DepthFrame,
        accumulators: MutableMapping[ObjectId, ObjectAccumulator]
    ) -> int:
        """
        Unproject every mask of a segmentation frame against one depth frame

        Args:
            segmentation: Matched segmentation frame
            frame: Depth frame within the timestamp tolerance
            accumulators: Per-object reservoirs, extended in place

        Returns:
            Number of points offered to reservoirs
        """
        depth = np.asarray(frame.depth_map, dtype=np.float32)
        if depth.ndim != 2 or depth.size == 0:
            logger.warning(f"Skipping depth frame at t={frame.timestamp:.3f}: depth map shape {depth.shape}")
            return 0

        height, width = depth.shape

        try:
            rays = self._rays_for(frame, width, height)
            transform = np.asarray(frame.camera_to_world, dtype=np.float32)
            if transform.shape != (4, 4):
                raise ValueError(f"camera_to_world must be 4x4, got {transform.shape}")
        except ValueError as e:
            logger.warning(f"Skipping depth frame at t={frame.timestamp:.3f}: {e}")
            return 0

        with np.errstate(invalid='ignore'):
            valid_depth = np.isfinite(depth) & (depth > 0)
        depth_conf = depth_confidence(frame.confidence_map, (height, width))

        total_points = 0

        for mask in segmentation.masks:
            try:
                self._mask_buffer = resample_mask(mask.mask, width, height, out=self._mask_buffer)
            except UnsupportedMaskFormatError as e:
                logger.warning(f"Skipping mask for object {mask.identifier}: {e}")
                continue

            selected = (self._mask_buffer >= self.mask_threshold) & valid_depth
            rows, cols = np.nonzero(selected)
            if len(rows) == 0:
                continue

            accumulator = accumulators.get(mask.identifier)
            if accumulator is None:
                accumulator = ObjectAccumulator(
                    mask.identifier,
                    label=mask.label,
                    max_capacity=self.max_samples_per_object,
                    rng=self.rng
                )
                accumulators[mask.identifier] = accumulator
                logger.debug(f"New object {mask.identifier} ({mask.label})")
            elif accumulator.label is None:
                accumulator.label = mask.label

            points_cam = rays[rows, cols] * depth[rows, cols][:, None]
            points_world = camera_to_world(points_cam, transform)

            mask_conf = float(np.clip(mask.confidence, 0.0, 1.0))
            confidences = encode_confidence(depth_conf[rows, cols] * mask_conf)

            accumulator.extend(points_world, confidences)
            total_points += len(rows)

        return total_points
