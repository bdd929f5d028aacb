#!/usr/bin/env python3
"""
Centroid and oriented bounding box per reconstructed object
"""

import logging
import numpy as np
from typing import Tuple

from recon_utils.geometry_utils import (
    compute_centroid,
    compute_covariance,
    sorted_eigen_decomposition,
    right_handed_basis,
    project_extents,
    matrix_to_quaternion
)
from object_recon.types import BoundingBox, ObjectSummary
from object_recon.reservoir import ObjectAccumulator

logger = logging.getLogger(__name__)

MIN_POINTS_FOR_AXES = 3

POINT_CLOUD_EXTENSION = "ply"


def compute_principal_axes(
    points: np.ndarray,
    centroid: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Oriented bounding box from the covariance of a point set

    Args:
        points: [N, 3] point coordinates
        centroid: [3] mean of the points

    Returns:
        axes: [3, 3] unit axes as rows, largest variance first, right-handed
        extents: [3] box size along each axis
        center: [3] world-space box center

    Fewer than three points, or a failed eigen-decomposition, yield identity
    axes, zero extents and the centroid as center.
    """
    identity = (np.eye(3), np.zeros(3), np.asarray(centroid, dtype=np.float64))

    if len(points) < MIN_POINTS_FOR_AXES:
        return identity

    covariance = compute_covariance(points, centroid)

    try:
        _, eigenvectors = sorted_eigen_decomposition(covariance)
    except np.linalg.LinAlgError as e:
        logger.warning(f"Eigen-decomposition failed, using identity basis: {e}")
        return identity

    basis = right_handed_basis(eigenvectors)
    extents, center = project_extents(points, centroid, basis)

    return basis, extents, center


def average_confidence(confidences: np.ndarray):
    """Mean encoded confidence scaled to [0, 1], or None without samples"""
    if len(confidences) == 0:
        return None
    return float(np.asarray(confidences, dtype=np.float64).sum() / (len(confidences) * 255.0))


def point_cloud_filename(accumulator: ObjectAccumulator) -> str:
    return f"{accumulator.identifier}.{POINT_CLOUD_EXTENSION}"


def summarize(accumulator: ObjectAccumulator) -> ObjectSummary:
    """Build the summary record for a non-empty accumulator"""
    points = accumulator.points
    centroid = compute_centroid(points)
    axes, extents, center = compute_principal_axes(points, centroid)

    # Axes become the rotation's columns
    quaternion = matrix_to_quaternion(axes.T)

    bounding_box = BoundingBox(
        center=center.tolist(),
        extents=extents.tolist(),
        axes=axes.tolist(),
        orientation_quaternion=quaternion.tolist()
    )

    return ObjectSummary(
        id=str(accumulator.identifier),
        label=accumulator.label,
        point_count=len(accumulator),
        centroid=centroid.tolist(),
        average_confidence=average_confidence(accumulator.confidences),
        bounding_box=bounding_box,
        point_cloud_file=point_cloud_filename(accumulator)
    )
