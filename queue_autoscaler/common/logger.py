import os
import logging
import json

# Attributes present on every LogRecord, everything else is an extra field
_RECORD_ATTRIBUTES = {
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'id', 'levelname', 'levelno', 'lineno', 'module',
    'msecs', 'message', 'msg', 'name', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'thread', 'threadName',
    'taskName'
}


def setup_logging(level=None, debug=False, log_format=None):
    """
    Set up logging for the autoscaler process.

    Args:
        level: Optional log level override (default: uses LOG_LEVEL env var or INFO)
        debug: Verbose mode, forces DEBUG level so intermediate scaling values are logged
        log_format: 'text' or 'json' (default: uses LOG_FORMAT env var or text)
    """
    if debug:
        level = 'DEBUG'
    elif level is None:
        level = os.environ.get('LOG_LEVEL', 'INFO').upper()

    numeric_level = getattr(logging, level.upper(), None)
    # Unknown names fall back to INFO, load_config reports them
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger().setLevel(numeric_level)

    if log_format is None:
        log_format = os.environ.get('LOG_FORMAT', 'text')

    if log_format.lower() == 'json':
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            handler.setFormatter(JsonFormatter())

    # Silence noisy loggers
    logging.getLogger('pika').setLevel(logging.WARNING)
    logging.getLogger('kubernetes').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logging.debug("Logging initialized")


class JsonFormatter(logging.Formatter):
    """
    Format logs as one JSON object per line for log collectors.
    """

    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'name': record.name,
            'message': record.getMessage()
        }

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_record[key] = value

        return json.dumps(log_record, default=str)
