#!/usr/bin/env python3
"""
Replay a recorded capture session through the reconstruction engine

Session layout:
    <session>/depth/*.npz         timestamp, depth_map, intrinsics, camera_to_world
                                  [, confidence_map, image_resolution]
    <session>/segmentation/*.npz  timestamp, identifiers, masks, confidences [, labels]

Usage:
    python object_recon/replay.py --session recordings/session_001
"""

import sys
import argparse
import numpy as np
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

sys.path.append(str(Path(__file__).parent.parent))

from tqdm import tqdm

from recon_utils import setup_logger, load_config, log_section, log_config, save_npz, load_npz
from object_recon.types import DepthFrame, SegmentationFrame, SegmentationMask
from object_recon.mask_resampler import as_planar8
from object_recon.reconstructor import ObjectPointCloudReconstructor

DEPTH_DIR = "depth"
SEGMENTATION_DIR = "segmentation"


def save_depth_frame(filepath: Union[str, Path], frame: DepthFrame):
    """Record a depth frame in session format"""
    arrays = {
        'timestamp': np.float64(frame.timestamp),
        'depth_map': np.asarray(frame.depth_map, dtype=np.float32),
        'intrinsics': np.asarray(frame.intrinsics, dtype=np.float64),
        'camera_to_world': np.asarray(frame.camera_to_world, dtype=np.float64),
    }
    if frame.confidence_map is not None:
        arrays['confidence_map'] = np.asarray(frame.confidence_map, dtype=np.uint8)
    if frame.image_resolution is not None:
        arrays['image_resolution'] = np.asarray(frame.image_resolution, dtype=np.int64)

    save_npz(filepath, **arrays)


def load_depth_frame(filepath: Union[str, Path]) -> DepthFrame:
    data = load_npz(filepath)

    image_resolution = None
    if 'image_resolution' in data:
        image_resolution = tuple(int(v) for v in data['image_resolution'])

    return DepthFrame(
        timestamp=float(data['timestamp']),
        depth_map=data['depth_map'],
        intrinsics=data['intrinsics'],
        camera_to_world=data['camera_to_world'],
        confidence_map=data.get('confidence_map'),
        image_resolution=image_resolution
    )


def save_segmentation_frame(filepath: Union[str, Path], frame: SegmentationFrame):
    """Record a segmentation frame in session format; masks must share a resolution"""
    labels = [mask.label or "" for mask in frame.masks]
    save_npz(
        filepath,
        timestamp=np.float64(frame.timestamp),
        identifiers=np.array([str(mask.identifier) for mask in frame.masks]),
        masks=np.stack([as_planar8(mask.mask) for mask in frame.masks]),
        confidences=np.array([mask.confidence for mask in frame.masks], dtype=np.float32),
        labels=np.array(labels)
    )


def load_segmentation_frame(filepath: Union[str, Path]) -> SegmentationFrame:
    data = load_npz(filepath)

    identifiers = [str(v) for v in data['identifiers']]
    labels: List[Optional[str]] = [None] * len(identifiers)
    if 'labels' in data:
        labels = [str(v) or None for v in data['labels']]

    masks = [
        SegmentationMask(
            identifier=identifier,
            mask=data['masks'][i],
            confidence=float(data['confidences'][i]),
            label=labels[i]
        )
        for i, identifier in enumerate(identifiers)
    ]

    return SegmentationFrame(timestamp=float(data['timestamp']), masks=masks)


def iter_session(session_dir: Path) -> Iterator[Tuple[float, int, Path]]:
    """
    Session events ordered by timestamp

    Yields:
        (timestamp, kind, path) where kind 0 is segmentation and 1 is depth,
        so segmentation frames precede depth frames with equal timestamps
    """
    events = []
    for kind, subdir in ((0, SEGMENTATION_DIR), (1, DEPTH_DIR)):
        for filepath in sorted((session_dir / subdir).glob("*.npz")):
            with np.load(filepath, allow_pickle=False) as data:
                timestamp = float(data['timestamp'])
            events.append((timestamp, kind, filepath))

    events.sort(key=lambda e: (e[0], e[1]))
    return iter(events)


def replay_session(
    reconstructor: ObjectPointCloudReconstructor,
    session_dir: Path,
    show_progress: bool = True
) -> int:
    """
    Feed a recorded session into the engine

    Returns:
        Number of depth frames processed
    """
    events = list(iter_session(session_dir))
    depth_frames = 0

    for _, kind, filepath in tqdm(events, desc="Replaying session", disable=not show_progress):
        if kind == 0:
            reconstructor.enqueue(load_segmentation_frame(filepath))
        else:
            reconstructor.process(load_depth_frame(filepath))
            depth_frames += 1

    return depth_frames


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Replay a capture session and reconstruct per-object point clouds")
    parser.add_argument("--session", required=True, help="Recorded session directory")
    parser.add_argument("--config", default=None, help="Reconstruction config YAML (defaults when omitted)")
    parser.add_argument("--output-dir", default=None, help="Override output.output_dir")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    # Console only until the configured level and log file are known
    setup_logger("object_recon")
    config = load_config(args.config)
    if args.output_dir is not None:
        config['output']['output_dir'] = args.output_dir

    log_cfg = config['logging']
    logger = setup_logger(
        "object_recon",
        log_dir=log_cfg['log_dir'],
        level=log_cfg['level'],
        save_to_file=log_cfg['save_to_file']
    )

    log_section(logger, "Per-Object Point-Cloud Reconstruction")
    logger.info(f"Configuration source: {args.config or 'built-in defaults'}")
    log_config(logger, config)

    session_dir = Path(args.session)
    if not session_dir.is_dir():
        logger.error(f"Session directory not found: {session_dir}")
        return 1

    reconstructor = ObjectPointCloudReconstructor.from_config(config)
    depth_frames = replay_session(reconstructor, session_dir, show_progress=not args.no_progress)
    logger.info(f"Replayed {depth_frames} depth frames")

    output = reconstructor.finalize(show_progress=not args.no_progress)
    if output is None:
        logger.warning("No reconstruction produced")
        return 1

    for summary in output.summaries:
        logger.info(
            f"  {summary.id} ({summary.label}): {summary.point_count} points, "
            f"extents {[round(e, 3) for e in summary.bounding_box.extents]}"
        )

    log_section(logger, f"Reconstructed {output.object_count} objects")
    logger.info(f"Index: {output.index_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
