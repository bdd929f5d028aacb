#!/usr/bin/env python3
"""
Write per-object point clouds and the JSON index of reconstructed objects
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from tqdm import tqdm

from recon_utils.io_utils import save_ply, save_json
from object_recon.types import ObjectSummary, ReconstructionOutput
from object_recon.reservoir import ObjectAccumulator
from object_recon.summarizer import summarize

logger = logging.getLogger(__name__)


def write_point_cloud(accumulator: ObjectAccumulator, filepath: Path):
    """Write one object's reservoir as ASCII PLY with a uchar confidence"""
    save_ply(filepath, accumulator.points, confidences=accumulator.confidences, ascii_format=True)


def export(
    accumulators: Iterable[ObjectAccumulator],
    output_dir: Path,
    index_path: Path,
    show_progress: bool = False
) -> Optional[ReconstructionOutput]:
    """
    Export every non-empty accumulator and write the index

    Args:
        accumulators: Per-object reservoirs
        output_dir: Directory for <id>.ply files, created if absent
        index_path: JSON index file
        show_progress: Display a progress bar

    Returns:
        ReconstructionOutput, or None when nothing was exported or the
        index could not be written
    """
    accumulators = sorted(accumulators, key=lambda acc: str(acc.identifier))
    if not accumulators:
        logger.info("No objects accumulated; nothing to export")
        return None

    output_dir = Path(output_dir)
    index_path = Path(index_path)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create object reconstruction directory {output_dir}: {e}")
        return None

    summaries: List[ObjectSummary] = []

    for accumulator in tqdm(accumulators, desc="Exporting objects", disable=not show_progress):
        if len(accumulator) == 0:
            continue

        summary = summarize(accumulator)
        filepath = output_dir / summary.point_cloud_file

        try:
            write_point_cloud(accumulator, filepath)
        except OSError as e:
            logger.error(f"Failed to write point cloud for object {accumulator.identifier}: {e}")
            continue

        logger.debug(f"Saved PLY: {filepath} ({summary.point_count} points)")
        summaries.append(summary)

    if not summaries:
        logger.info("No object produced a point cloud")
        return None

    try:
        save_json(index_path, [summary.to_dict() for summary in summaries])
    except OSError as e:
        logger.error(f"Failed to persist object reconstruction index {index_path}: {e}")
        return None

    logger.info(f"Saved index of {len(summaries)} objects: {index_path}")

    return ReconstructionOutput(
        index_path=index_path,
        object_count=len(summaries),
        summaries=summaries
    )
