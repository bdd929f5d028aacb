#!/usr/bin/env python3
"""
Geometry utilities for oriented bounding boxes of point clouds
"""

import numpy as np
from typing import Tuple
from scipy.spatial.transform import Rotation


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """Normalize vector(s)"""
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    return v / (norm + 1e-12)


def compute_centroid(points: np.ndarray) -> np.ndarray:
    """Mean of [N, 3] points in float64; zero vector for an empty set"""
    if len(points) == 0:
        return np.zeros(3)
    return points.astype(np.float64).mean(axis=0)


def compute_covariance(points: np.ndarray, centroid: np.ndarray) -> np.ndarray:
    """
    Population covariance of a point set

    Args:
        points: [N, 3] point coordinates
        centroid: [3] mean of the points

    Returns:
        covariance: [3, 3] symmetric matrix, mean of outer products of
            the centered points
    """
    centered = points.astype(np.float64) - centroid
    return centered.T @ centered / len(points)


def sorted_eigen_decomposition(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigen-decomposition of a symmetric matrix, largest eigenvalue first

    Args:
        matrix: [3, 3] symmetric matrix

    Returns:
        eigenvalues: [3] in descending order
        eigenvectors: [3, 3] with eigenvectors as rows, matching eigenvalues

    Raises:
        numpy.linalg.LinAlgError: If the solver does not converge or the
            result is not finite
    """
    eigenvalues, eigenvectors = np.linalg.eigh(matrix)

    if not (np.all(np.isfinite(eigenvalues)) and np.all(np.isfinite(eigenvectors))):
        raise np.linalg.LinAlgError("Eigen-decomposition produced non-finite values")

    # eigh returns ascending eigenvalues with eigenvectors as columns
    order = np.argsort(eigenvalues)[::-1]
    return eigenvalues[order], eigenvectors[:, order].T


def right_handed_basis(axes: np.ndarray) -> np.ndarray:
    """
    Normalize three axes and flip the third if the basis is left-handed

    Args:
        axes: [3, 3] axes as rows

    Returns:
        basis: [3, 3] unit axes as rows with determinant +1
    """
    basis = normalize_vector(np.asarray(axes, dtype=np.float64))
    if np.linalg.det(basis) < 0:
        basis[2] = -basis[2]
    return basis


def project_extents(
    points: np.ndarray,
    centroid: np.ndarray,
    basis: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Per-axis extents and world-space center of points in a basis

    Args:
        points: [N, 3] point coordinates
        centroid: [3] origin of the projection
        basis: [3, 3] axes as rows

    Returns:
        extents: [3] max - min along each axis
        center: [3] world-space center of the box spanned by min/max
    """
    projections = (points.astype(np.float64) - centroid) @ basis.T
    min_values = projections.min(axis=0)
    max_values = projections.max(axis=0)

    extents = max_values - min_values
    center = centroid + ((min_values + max_values) * 0.5) @ basis
    return extents, center


def matrix_to_quaternion(R: np.ndarray) -> np.ndarray:
    """
    Convert rotation matrix to quaternion

    Args:
        R: [3, 3] rotation matrix

    Returns:
        q: [4] quaternion [x, y, z, w]
    """
    return Rotation.from_matrix(R).as_quat()
