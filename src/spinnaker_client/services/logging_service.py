"""
Logging setup for processes that embed the Spinnaker client.

The client's services attach request details to their records through
``extra``: ``http_method``, ``http_url``, ``http_status`` and ``attempt``.
The JSON file log groups them under ``request``.
"""
import json
import logging
import logging.handlers
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


# Record attribute -> key in the "request" object of a JSON log line
REQUEST_FIELDS = {
    'http_method': 'method',
    'http_url': 'url',
    'http_status': 'status',
    'attempt': 'attempt',
}


@dataclass
class LogEntry:
    """One line of the JSON file log."""
    timestamp: str
    level: str
    logger: str
    message: str
    source: str
    request: Optional[Dict[str, Any]] = None
    context: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None

    def to_json(self) -> str:
        entry = {key: value for key, value in asdict(self).items() if value is not None}
        return json.dumps(entry, default=str)


def request_details(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    """Collect the request attributes set on a record, or None if it has none."""
    details = {}
    for attribute, key in REQUEST_FIELDS.items():
        value = getattr(record, attribute, None)
        if value is not None:
            details[key] = value
    return details or None


class JSONFormatter(logging.Formatter):
    """Formats records as single-line JSON log entries."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = LogEntry(
            timestamp=datetime.fromtimestamp(record.created).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            source=f"{record.module}.{record.funcName}:{record.lineno}",
            request=request_details(record),
            context=getattr(record, 'context', None)
        )

        if record.exc_info and record.exc_info[0]:
            log_entry.error = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        return log_entry.to_json()


class LoggingService:
    """Configures the root logger from a ClientConfig."""

    CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    def __init__(self, config, stream=None):
        """
        Initialize logging service with configuration.

        Args:
            config: ClientConfig providing log_level and log_file_path
            stream: Console stream, defaults to stdout
        """
        self.config = config
        self.stream = stream or sys.stdout
        self._setup_logging()
        self.logger = logging.getLogger(__name__)
        self.logger.info("Logging service initialized")

    def _setup_logging(self):
        """Install console and optional rotating JSON file handlers."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        root_logger.setLevel(log_level)

        console_handler = logging.StreamHandler(self.stream)
        console_handler.setFormatter(logging.Formatter(self.CONSOLE_FORMAT))
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

        if self.config.log_file_path:
            Path(self.config.log_file_path).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=self.config.log_file_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setFormatter(JSONFormatter())
            file_handler.setLevel(log_level)
            root_logger.addHandler(file_handler)

        # Connection pool chatter is only useful when debugging the transport
        logging.getLogger('urllib3').setLevel(max(log_level, logging.WARNING))

    def log_with_context(self, level: str, message: str, **context):
        """Log message with additional context data."""
        logger = logging.getLogger('spinnaker_client')
        log_method = getattr(logger, level.lower(), logger.info)
        log_method(message, extra={'context': context})
