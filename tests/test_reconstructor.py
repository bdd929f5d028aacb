"""
End-to-end tests for the reconstruction engine and its exporter.
"""

import os
import sys
import json
import tempfile
import unittest
import uuid
from pathlib import Path
from unittest import mock

import numpy as np

# Add the project root directory to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from object_recon import (
    ObjectPointCloudReconstructor,
    DepthFrame,
    SegmentationFrame,
    SegmentationMask,
    ObjectSummary,
)
from recon_utils import load_config, load_ply


def depth_frame(timestamp, depth_map, confidence_map=None):
    return DepthFrame(
        timestamp=timestamp,
        depth_map=np.asarray(depth_map, dtype=np.float32),
        intrinsics=np.eye(3),
        camera_to_world=np.eye(4),
        confidence_map=confidence_map
    )


def full_mask_frame(timestamp, identifier, shape, confidence=1.0, label=None):
    mask = SegmentationMask(identifier, np.ones(shape, dtype=bool), confidence=confidence, label=label)
    return SegmentationFrame(timestamp=timestamp, masks=[mask])


class TestReconstructionEngine(unittest.TestCase):
    """Capture-time behaviour of the engine."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self.tmp.name) / "objects"
        self.index_path = Path(self.tmp.name) / "objects_index.json"
        self.engine = ObjectPointCloudReconstructor(
            output_dir=self.output_dir,
            index_path=self.index_path,
            rng=np.random.default_rng(0)
        )

    def tearDown(self):
        self.tmp.cleanup()

    def test_identity_camera_scenario(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2), label="mug"))
        matched = self.engine.process(depth_frame(1.0, np.full((2, 2), 2.0)))

        self.assertEqual(matched, 1)
        self.assertEqual(list(self.engine.accumulators), ["obj1"])
        acc = self.engine.accumulators["obj1"]
        self.assertEqual(len(acc), 4)
        np.testing.assert_allclose(acc.points[:, 2], 2.0)
        self.assertTrue(np.all(acc.confidences == 255))

    def test_partial_confidence_scenario(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2), confidence=0.5))
        self.engine.process(depth_frame(1.0, np.ones((2, 2)), confidence_map=np.ones((2, 2), dtype=np.uint8)))

        self.assertTrue(np.all(self.engine.accumulators["obj1"].confidences == 64))

    def test_capacity_bound_across_frames(self):
        engine = ObjectPointCloudReconstructor(max_samples_per_object=200_000, rng=np.random.default_rng(1))
        engine.enqueue(full_mask_frame(1.0, "obj1", (500, 600)))
        engine.process(depth_frame(1.0, np.ones((500, 600))))

        acc = engine.accumulators["obj1"]
        self.assertEqual(acc.total_samples_seen, 300_000)
        self.assertEqual(len(acc), 200_000)

    def test_unmatched_segmentation_produces_nothing(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2)))
        self.engine.process(depth_frame(0.8, np.ones((2, 2))))
        self.engine.process(depth_frame(1.2, np.ones((2, 2))))

        self.assertEqual(len(self.engine.accumulators), 0)
        self.assertEqual(self.engine.pending_segmentation_count, 0)

    def test_frame_without_depth_ignored(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2)))
        frame = DepthFrame(timestamp=1.0, depth_map=None, intrinsics=np.eye(3), camera_to_world=np.eye(4))

        self.assertEqual(self.engine.process(frame), 0)
        self.assertEqual(self.engine.pending_segmentation_count, 1)

    def test_empty_depth_map_does_not_raise(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2)))

        self.assertEqual(self.engine.process(depth_frame(1.0, np.zeros((0, 0)))), 1)
        self.assertEqual(len(self.engine.accumulators), 0)
        self.assertEqual(self.engine.pending_segmentation_count, 0)

    def test_malformed_confidence_map_matched_once(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2)))
        bad_conf = np.full((3, 3, 2), 2, dtype=np.uint8)

        self.engine.process(depth_frame(1.0, np.full((2, 2), 2.0), confidence_map=bad_conf))
        self.engine.process(depth_frame(1.01, np.full((2, 2), 2.0)))

        acc = self.engine.accumulators["obj1"]
        self.assertEqual(acc.total_samples_seen, 4)
        self.assertEqual(self.engine.pending_segmentation_count, 0)

    def test_accumulators_read_only(self):
        with self.assertRaises(TypeError):
            self.engine.accumulators["x"] = None

    def test_reset(self):
        self.engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2)))
        self.engine.process(depth_frame(1.0, np.ones((2, 2))))
        self.engine.enqueue(full_mask_frame(2.0, "obj2", (2, 2)))

        self.engine.reset()

        self.assertEqual(len(self.engine.accumulators), 0)
        self.assertEqual(self.engine.pending_segmentation_count, 0)
        self.assertIsNone(self.engine.finalize())

    def test_uuid_identifiers(self):
        identifier = uuid.uuid4()
        self.engine.enqueue(full_mask_frame(1.0, identifier, (2, 2)))
        self.engine.process(depth_frame(1.0, np.ones((2, 2))))

        output = self.engine.finalize()

        self.assertEqual(output.summaries[0].id, str(identifier))
        self.assertTrue((self.output_dir / f"{identifier}.ply").exists())

    def test_from_config(self):
        config = load_config(None)
        config['reconstruction']['max_samples_per_object'] = 3
        config['reconstruction']['seed'] = 5
        config['output']['output_dir'] = str(self.output_dir)

        engine = ObjectPointCloudReconstructor.from_config(config)
        engine.enqueue(full_mask_frame(1.0, "obj1", (2, 2)))
        engine.process(depth_frame(1.0, np.ones((2, 2))))

        self.assertEqual(len(engine.accumulators["obj1"]), 3)
        self.assertEqual(engine.index_path, self.output_dir / "objects_index.json")


class TestFinalize(unittest.TestCase):
    """Export of point clouds and the JSON index."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self.tmp.name) / "nested" / "objects"
        self.index_path = Path(self.tmp.name) / "objects_index.json"
        self.engine = ObjectPointCloudReconstructor(rng=np.random.default_rng(0))

    def tearDown(self):
        self.tmp.cleanup()

    def _capture_two_objects(self):
        frame = SegmentationFrame(timestamp=1.0, masks=[
            SegmentationMask("b-obj", np.array([[255, 0], [255, 0]], dtype=np.uint8), label="lamp"),
            SegmentationMask("a-obj", np.array([[0, 255], [0, 255]], dtype=np.uint8), confidence=0.5),
        ])
        self.engine.enqueue(frame)
        self.engine.process(depth_frame(1.0, np.full((2, 2), 3.0)))

    def test_no_segmentation_returns_none(self):
        self.engine.process(depth_frame(1.0, np.ones((2, 2))))

        self.assertIsNone(self.engine.finalize(self.output_dir, self.index_path))
        self.assertFalse(self.index_path.exists())

    def test_finalize_requires_destination(self):
        with self.assertRaises(ValueError):
            self.engine.finalize()

    def test_exports_point_clouds_and_index(self):
        self._capture_two_objects()

        output = self.engine.finalize(self.output_dir, self.index_path)

        self.assertIsNotNone(output)
        self.assertEqual(output.object_count, 2)
        self.assertEqual(output.index_path, self.index_path)
        self.assertEqual([s.id for s in output.summaries], ["a-obj", "b-obj"])

        with open(self.index_path) as f:
            index = json.load(f)
        self.assertEqual(len(index), 2)
        self.assertEqual(
            set(index[0].keys()),
            {'id', 'label', 'pointCount', 'centroid', 'averageConfidence', 'boundingBox', 'pointCloudFile'}
        )
        self.assertEqual(
            set(index[0]['boundingBox'].keys()),
            {'center', 'extents', 'axes', 'orientationQuaternion'}
        )
        self.assertEqual(index[1]['label'], "lamp")
        self.assertEqual(index[0]['pointCloudFile'], "a-obj.ply")
        self.assertAlmostEqual(index[0]['averageConfidence'], 128 / 255)
        self.assertEqual(ObjectSummary.from_dict(index[1]), output.summaries[1])

        points, confidences, _ = load_ply(self.output_dir / "b-obj.ply")
        self.assertEqual(points.shape, (2, 3))
        np.testing.assert_allclose(points[:, 2], 3.0)
        self.assertEqual(confidences.tolist(), [255, 255])

    def test_point_cloud_header(self):
        self._capture_two_objects()
        self.engine.finalize(self.output_dir, self.index_path)

        lines = (self.output_dir / "a-obj.ply").read_text().splitlines()

        self.assertEqual(lines[:8], [
            "ply",
            "format ascii 1.0",
            "element vertex 2",
            "property float x",
            "property float y",
            "property float z",
            "property uchar confidence",
            "end_header",
        ])
        self.assertEqual(len(lines), 10)
        self.assertEqual(lines[8].split()[-1], "128")
        self.assertEqual(lines[8].split()[2], "3.000000")

    def test_object_write_failure_skips_object(self):
        self._capture_two_objects()

        from object_recon import exporter
        original = exporter.write_point_cloud

        def failing_write(accumulator, filepath):
            if accumulator.identifier == "a-obj":
                raise OSError("disk full")
            original(accumulator, filepath)

        with mock.patch("object_recon.exporter.write_point_cloud", side_effect=failing_write):
            output = self.engine.finalize(self.output_dir, self.index_path)

        self.assertEqual(output.object_count, 1)
        self.assertEqual(output.summaries[0].id, "b-obj")

    def test_all_writes_failing_returns_none(self):
        self._capture_two_objects()

        with mock.patch("object_recon.exporter.write_point_cloud", side_effect=OSError("read-only")):
            self.assertIsNone(self.engine.finalize(self.output_dir, self.index_path))

    def test_index_write_failure_returns_none(self):
        self._capture_two_objects()

        with mock.patch("object_recon.exporter.save_json", side_effect=OSError("read-only")):
            self.assertIsNone(self.engine.finalize(self.output_dir, self.index_path))

    def test_output_directory_failure_returns_none(self):
        self._capture_two_objects()
        blocker = Path(self.tmp.name) / "blocker"
        blocker.write_text("not a directory")

        self.assertIsNone(self.engine.finalize(blocker / "objects", self.index_path))


if __name__ == "__main__":
    unittest.main()
