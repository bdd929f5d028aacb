"""Utility modules for the object point-cloud reconstruction engine"""

from .config_loader import ConfigLoader, load_config
from .logger import setup_logger, log_section, log_config
from .camera_utils import (
    invert_intrinsics,
    pixel_rays,
    camera_to_world,
    unproject_points
)
from .geometry_utils import (
    normalize_vector,
    compute_centroid,
    compute_covariance,
    sorted_eigen_decomposition,
    right_handed_basis,
    project_extents,
    matrix_to_quaternion
)
from .io_utils import (
    save_ply,
    load_ply,
    save_json,
    load_json,
    save_npz,
    load_npz
)

__all__ = [
    'ConfigLoader',
    'load_config',
    'setup_logger',
    'log_section',
    'log_config',
    'invert_intrinsics',
    'pixel_rays',
    'camera_to_world',
    'unproject_points',
    'normalize_vector',
    'compute_centroid',
    'compute_covariance',
    'sorted_eigen_decomposition',
    'right_handed_basis',
    'project_extents',
    'matrix_to_quaternion',
    'save_ply',
    'load_ply',
    'save_json',
    'load_json',
    'save_npz',
    'load_npz',
]
