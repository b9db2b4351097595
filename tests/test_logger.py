import json
import logging
import unittest
from unittest import mock

from queue_autoscaler.common.logger import JsonFormatter, setup_logging


class TestJsonFormatter(unittest.TestCase):
    """Tests for JSON log output."""

    def make_record(self, **extra):
        record = logging.LogRecord('queue_autoscaler', logging.INFO, __file__, 10,
                                   'Tick: backlog=%d', (25,), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_format_message(self):
        """Test that the formatted message and level are included."""
        output = json.loads(JsonFormatter().format(self.make_record()))

        self.assertEqual(output['message'], 'Tick: backlog=25')
        self.assertEqual(output['level'], 'INFO')
        self.assertEqual(output['name'], 'queue_autoscaler')
        self.assertEqual(set(output), {'timestamp', 'level', 'name', 'message'})

    def test_extra_fields_included(self):
        """Test that extra record attributes are carried into the output."""
        output = json.loads(JsonFormatter().format(self.make_record(deployment='builder')))

        self.assertEqual(output['deployment'], 'builder')
        self.assertNotIn('msg', output)


@mock.patch('queue_autoscaler.common.logger.logging.basicConfig')
class TestSetupLogging(unittest.TestCase):
    """Tests for choosing the log level."""

    def setUp(self):
        root_logger = logging.getLogger()
        self.addCleanup(root_logger.setLevel, root_logger.level)

    def test_named_level(self, mock_basic_config):
        """Test that a level name is applied to the root logger."""
        setup_logging(level='warning', log_format='text')

        self.assertEqual(mock_basic_config.call_args[1]['level'], logging.WARNING)
        self.assertEqual(logging.getLogger().level, logging.WARNING)

    def test_debug_overrides_level(self, mock_basic_config):
        """Test that verbose mode forces DEBUG."""
        setup_logging(level='ERROR', debug=True, log_format='text')

        self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_unknown_level_falls_back_to_info(self, mock_basic_config):
        """Test that names which are not levels do not break logging setup."""
        for level in ('LOGGER', 'NOPE'):
            with self.subTest(level=level):
                setup_logging(level=level, log_format='text')

                self.assertEqual(mock_basic_config.call_args[1]['level'], logging.INFO)
                self.assertEqual(logging.getLogger().level, logging.INFO)


if __name__ == '__main__':
    unittest.main()
