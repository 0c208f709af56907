import logging
import unittest
from unittest.mock import patch

from bucket_brigade import logging_utils


class ConfigureLoggingTests(unittest.TestCase):
    def setUp(self):
        botocore_logger = logging.getLogger("botocore")
        self.addCleanup(botocore_logger.setLevel, botocore_logger.level)

    @patch("bucket_brigade.logging_utils.logging.basicConfig")
    def test_installs_single_stderr_handler(self, mock_basic_config):
        logging_utils.configure_logging("debug")

        kwargs = mock_basic_config.call_args.kwargs
        self.assertTrue(kwargs["force"])
        self.assertEqual(logging.DEBUG, kwargs["level"])
        self.assertEqual(1, len(kwargs["handlers"]))
        self.assertEqual(logging_utils.LOG_FORMAT, kwargs["handlers"][0].formatter._fmt)
        self.assertEqual(logging.INFO, logging.getLogger("botocore").level)

    @patch("bucket_brigade.logging_utils.logging.basicConfig")
    def test_unknown_level_falls_back_to_warning(self, mock_basic_config):
        logging_utils.configure_logging("chatty")

        self.assertEqual(logging.WARNING, mock_basic_config.call_args.kwargs["level"])


if __name__ == "__main__":
    unittest.main()
