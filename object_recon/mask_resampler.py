#!/usr/bin/env python3
"""
Rescale segmentation masks to the depth map resolution
"""

import cv2
import numpy as np
from typing import Optional


class UnsupportedMaskFormatError(ValueError):
    """Mask buffer is not a single-channel 8-bit or boolean image"""


def as_planar8(mask: np.ndarray) -> np.ndarray:
    """Validate a mask buffer and view it as a 2D uint8 image"""
    mask = np.asarray(mask)

    if mask.ndim == 3 and mask.shape[2] == 1:
        mask = mask[:, :, 0]

    if mask.ndim != 2:
        raise UnsupportedMaskFormatError(
            f"Mask must be single-channel 2D, got shape {mask.shape}"
        )

    if mask.shape[0] == 0 or mask.shape[1] == 0:
        raise UnsupportedMaskFormatError(f"Mask is empty: {mask.shape}")

    if mask.dtype == np.bool_:
        return mask.view(np.uint8) * np.uint8(255)

    if mask.dtype != np.uint8:
        raise UnsupportedMaskFormatError(f"Unsupported mask pixel format: {mask.dtype}")

    return mask


def resample_mask(
    mask: np.ndarray,
    target_width: int,
    target_height: int,
    out: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Resample a mask buffer to the target resolution

    Matching resolutions are copied row by row without filtering. Otherwise
    the mask is rescaled with area averaging when shrinking and bilinear
    interpolation when enlarging.

    Args:
        mask: [H, W] uint8 or bool mask
        target_width: Depth map width
        target_height: Depth map height
        out: Optional [target_height, target_width] uint8 buffer to reuse

    Returns:
        resampled: [target_height, target_width] uint8 mask values

    Raises:
        UnsupportedMaskFormatError: If the mask is not a supported format
    """
    source = as_planar8(mask)
    height, width = source.shape

    if out is None or out.shape != (target_height, target_width) or out.dtype != np.uint8:
        out = np.empty((target_height, target_width), dtype=np.uint8)

    if width == target_width and height == target_height:
        for row in range(height):
            out[row, :] = source[row, :]
        return out

    shrinking = target_width <= width and target_height <= height
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR

    # cv2 requires a contiguous buffer
    resized = cv2.resize(
        np.ascontiguousarray(source),
        (target_width, target_height),
        interpolation=interpolation
    )
    out[...] = resized
    return out
