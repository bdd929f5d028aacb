#!/usr/bin/env python3
"""
I/O utilities for saving and loading 3D data
"""

import os
import json
import tempfile
import numpy as np
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


def _atomic_write(filepath: Path, data: bytes):
    """Write bytes to a sibling temp file, then rename it over filepath"""
    fd, tmp_path = tempfile.mkstemp(dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.replace(tmp_path, filepath)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def save_ply(
    filepath: str,
    points: np.ndarray,
    confidences: Optional[np.ndarray] = None,
    colors: Optional[np.ndarray] = None,
    ascii_format: bool = True
):
    """
    Save point cloud to PLY file

    Args:
        filepath: Output file path
        points: [N, 3] point coordinates
        confidences: [N] per-point confidence (0-255) or None
        colors: [N, 3] RGB colors (0-255) or None
        ascii_format: Save as ASCII instead of binary little-endian
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    n_points = len(points)

    header = "ply\n"
    header += f"format {'ascii' if ascii_format else 'binary_little_endian'} 1.0\n"
    header += f"element vertex {n_points}\n"
    header += "property float x\n"
    header += "property float y\n"
    header += "property float z\n"

    if confidences is not None:
        header += "property uchar confidence\n"

    if colors is not None:
        header += "property uchar red\n"
        header += "property uchar green\n"
        header += "property uchar blue\n"

    header += "end_header\n"

    if ascii_format:
        lines = [header]
        for i in range(n_points):
            line = f"{points[i, 0]:.6f} {points[i, 1]:.6f} {points[i, 2]:.6f}"

            if confidences is not None:
                line += f" {int(confidences[i])}"

            if colors is not None:
                line += f" {int(colors[i, 0])} {int(colors[i, 1])} {int(colors[i, 2])}"

            lines.append(line + "\n")

        payload = "".join(lines).encode('ascii')
    else:
        fields = [('x', '<f4'), ('y', '<f4'), ('z', '<f4')]
        if confidences is not None:
            fields.append(('confidence', 'u1'))
        if colors is not None:
            fields += [('red', 'u1'), ('green', 'u1'), ('blue', 'u1')]

        vertices = np.empty(n_points, dtype=fields)
        vertices['x'], vertices['y'], vertices['z'] = np.asarray(points, dtype=np.float32).reshape(-1, 3).T
        if confidences is not None:
            vertices['confidence'] = confidences
        if colors is not None:
            vertices['red'], vertices['green'], vertices['blue'] = np.asarray(colors).reshape(-1, 3).T

        payload = header.encode('ascii') + vertices.tobytes()

    _atomic_write(filepath, payload)


def load_ply(filepath: str) -> Tuple[np.ndarray, Optional[np.ndarray], Optional[np.ndarray]]:
    """
    Load point cloud from PLY file

    Args:
        filepath: Input file path

    Returns:
        points: [N, 3] point coordinates
        confidences: [N] per-point confidence or None
        colors: [N, 3] RGB colors or None
    """
    from plyfile import PlyData

    plydata = PlyData.read(str(filepath))
    vertex = plydata['vertex']
    names = vertex.data.dtype.names

    points = np.vstack([vertex['x'], vertex['y'], vertex['z']]).T

    confidences = None
    if 'confidence' in names:
        confidences = np.asarray(vertex['confidence'])

    colors = None
    if 'red' in names:
        colors = np.vstack([vertex['red'], vertex['green'], vertex['blue']]).T

    return points, confidences, colors


def save_json(filepath: str, data: Any):
    """Save JSON-serializable data to file atomically"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(data, indent=2)
    _atomic_write(filepath, payload.encode('utf-8'))


def load_json(filepath: str) -> Any:
    """Load JSON data from file"""
    with open(filepath, 'r') as f:
        return json.load(f)


def save_npz(filepath: str, **arrays):
    """Save multiple arrays to compressed NPZ file"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    np.savez_compressed(filepath, **arrays)


def load_npz(filepath: str) -> Dict[str, np.ndarray]:
    """Load arrays from NPZ file"""
    with np.load(filepath, allow_pickle=False) as data:
        return {key: data[key] for key in data.keys()}
