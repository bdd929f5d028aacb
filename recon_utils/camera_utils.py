#!/usr/bin/env python3
"""
Camera utilities for depth unprojection
"""

import numpy as np


def invert_intrinsics(K: np.ndarray) -> np.ndarray:
    """
    Invert a pinhole intrinsic matrix

    Args:
        K: [3, 3] intrinsic matrix

    Returns:
        K_inv: [3, 3] inverse intrinsic matrix

    Raises:
        ValueError: If K is not 3x3 or is singular
    """
    K = np.asarray(K, dtype=np.float64)
    if K.shape != (3, 3):
        raise ValueError(f"Intrinsic matrix must be 3x3, got {K.shape}")

    try:
        return np.linalg.inv(K)
    except np.linalg.LinAlgError as e:
        raise ValueError(f"Intrinsic matrix is singular: {e}") from e


def pixel_centers(
    width: int,
    height: int,
    scale_x: float = 1.0,
    scale_y: float = 1.0
) -> np.ndarray:
    """
    Pixel-centre coordinates of a width x height grid, scaled into the
    resolution the intrinsics refer to

    Returns:
        points_2d: [height, width, 2] image coordinates (x, y)
    """
    xs = (np.arange(width, dtype=np.float64) + 0.5) * scale_x
    ys = (np.arange(height, dtype=np.float64) + 0.5) * scale_y
    grid_x, grid_y = np.meshgrid(xs, ys)
    return np.stack([grid_x, grid_y], axis=-1)


def camera_to_world(
    points_cam: np.ndarray,
    transform: np.ndarray
) -> np.ndarray:
    """
    Apply a 4x4 camera-to-world transform to camera-space points

    Args:
        points_cam: [N, 3] camera coordinates
        transform: [4, 4] homogeneous camera-to-world transform

    Returns:
        points_3d: [N, 3] world coordinates (homogeneous component dropped)
    """
    transform = np.asarray(transform, dtype=points_cam.dtype)
    if transform.shape != (4, 4):
        raise ValueError(f"Camera-to-world transform must be 4x4, got {transform.shape}")

    R = transform[:3, :3]
    t = transform[:3, 3]
    return points_cam @ R.T + t


def unproject_points(
    points_2d: np.ndarray,
    depth: np.ndarray,
    K: np.ndarray,
    transform: np.ndarray
) -> np.ndarray:
    """
    Unproject 2D points with depth to 3D world coordinates

    Args:
        points_2d: [N, 2] image coordinates
        depth: [N] depth values along the optical axis
        K: [3, 3] intrinsic matrix
        transform: [4, 4] camera-to-world transform

    Returns:
        points_3d: [N, 3] world coordinates
    """
    points_2d_h = np.concatenate([
        points_2d,
        np.ones((len(points_2d), 1))
    ], axis=1)

    K_inv = invert_intrinsics(K)
    points_cam = (K_inv @ points_2d_h.T).T * depth[:, None]

    return camera_to_world(points_cam, transform)


def pixel_rays(
    K: np.ndarray,
    width: int,
    height: int,
    scale_x: float = 1.0,
    scale_y: float = 1.0
) -> np.ndarray:
    """
    Camera-space ray directions K^-1 [u, v, 1] for every pixel centre

    Rays are the unit-depth unprojection of each pixel centre, so
    multiplying by a depth value gives the camera-space point at that depth.

    Returns:
        rays: [height, width, 3] float32 ray directions
    """
    points_2d = pixel_centers(width, height, scale_x, scale_y).reshape(-1, 2)
    rays = unproject_points(points_2d, np.ones(len(points_2d)), K, np.eye(4))
    return rays.reshape(height, width, 3).astype(np.float32)
