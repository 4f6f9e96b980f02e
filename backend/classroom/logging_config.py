"""
Structured JSON logging.

Every log line is one JSON object with timestamp, level, logger channel,
message, and an optional ``context`` dict passed through ``extra``.
"""

import json
import logging
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):

	def format(self, record: logging.LogRecord) -> str:
		entry = {
			"timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
			"level": record.levelname,
			"channel": record.name,
			"message": record.getMessage(),
			"context": getattr(record, "context", None) or {},
		}
		if record.exc_info:
			entry["exception"] = self.formatException(record.exc_info)
		return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JsonFormatter())

	root_logger = logging.getLogger()
	root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
	root_logger.handlers = [handler]

	logging.getLogger("passlib").setLevel(logging.ERROR)
	logging.getLogger("httpx").setLevel(logging.WARNING)
	return root_logger
