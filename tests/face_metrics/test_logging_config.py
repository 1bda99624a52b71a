import logging
import os
import sys
import tempfile
import unittest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from face_metrics.utils.logging_config import (LoggingContext, get_logger,
                                               level_from_name, setup_logging)


class TestLoggingConfig(unittest.TestCase):

    def setUp(self):
        """Keep the root logger configuration intact across tests."""
        root = logging.getLogger()
        self.saved_handlers = list(root.handlers)
        self.saved_level = root.level

    def tearDown(self):
        root = logging.getLogger()
        for handler in root.handlers:
            if handler not in self.saved_handlers:
                handler.close()
        root.handlers = self.saved_handlers
        root.setLevel(self.saved_level)

    def test_level_from_name(self):
        self.assertEqual(level_from_name("debug"), logging.DEBUG)
        self.assertEqual(level_from_name("WARNING"), logging.WARNING)
        with self.assertRaises(ValueError):
            level_from_name("chatty")

    def test_get_logger(self):
        logger = get_logger("face_metrics.ui.cli")
        self.assertIs(logger, logging.getLogger("face_metrics.ui.cli"))

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = os.path.join(temp_dir, "logs", "face_metrics.log")
            setup_logging(level=logging.INFO, log_file=log_file, enable_colors=False)
            logging.getLogger("face_metrics.test").info("written to file")

            for handler in logging.getLogger().handlers:
                handler.flush()
            with open(log_file, encoding='utf-8') as f:
                self.assertIn("written to file", f.read())

            for handler in logging.getLogger().handlers:
                handler.close()

    def test_logging_context_restores_level(self):
        logger = logging.getLogger("face_metrics.context")
        logger.setLevel(logging.WARNING)

        with LoggingContext(logging.DEBUG, "face_metrics.context") as scoped:
            self.assertEqual(scoped.level, logging.DEBUG)

        self.assertEqual(logger.level, logging.WARNING)


if __name__ == '__main__':
    unittest.main()
