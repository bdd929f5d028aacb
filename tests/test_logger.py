"""
Tests for shared logging setup across the package loggers.
"""

import os
import sys
import logging
import tempfile
import unittest
from pathlib import Path

from rich.logging import RichHandler

# Add the project root directory to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recon_utils.logger import setup_logger, log_config, PACKAGE_LOGGERS


class TestSetupLogger(unittest.TestCase):
    """Handlers shared by object_recon and recon_utils."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        for package in PACKAGE_LOGGERS:
            package_logger = logging.getLogger(package)
            for handler in package_logger.handlers:
                handler.close()
            package_logger.handlers.clear()
            package_logger.setLevel(logging.NOTSET)
        self.tmp.cleanup()

    def test_utility_loggers_reach_console(self):
        setup_logger("object_recon", level="INFO", save_to_file=False)

        engine_handlers = logging.getLogger("object_recon").handlers
        utils_handlers = logging.getLogger("recon_utils").handlers

        self.assertEqual(len(engine_handlers), 1)
        self.assertIsInstance(engine_handlers[0], RichHandler)
        self.assertIs(utils_handlers[0], engine_handlers[0])
        self.assertTrue(logging.getLogger("recon_utils.config_loader").isEnabledFor(logging.INFO))

    def test_file_handler_receives_utility_records(self):
        setup_logger("object_recon", log_dir=self.tmp.name, level="WARNING", save_to_file=True)

        logging.getLogger("recon_utils.config_loader").debug("utility detail")
        for handler in logging.getLogger("recon_utils").handlers:
            handler.flush()

        log_files = list(Path(self.tmp.name).glob("object_recon_*.log"))
        self.assertEqual(len(log_files), 1)
        self.assertIn("recon_utils.config_loader - DEBUG - utility detail", log_files[0].read_text())

    def test_repeated_setup_replaces_handlers(self):
        setup_logger("object_recon", save_to_file=False)
        setup_logger("object_recon", save_to_file=False)

        self.assertEqual(len(logging.getLogger("recon_utils").handlers), 1)

    def test_log_config_nested(self):
        logger = logging.getLogger("object_recon.test")

        with self.assertLogs(logger, level="INFO") as captured:
            log_config(logger, {"output": {"paths": {"index_file": "objects_index.json"}}})

        self.assertEqual(captured.output[-1], "INFO:object_recon.test:      index_file: objects_index.json")


if __name__ == "__main__":
    unittest.main()
