import logging
import json
import sys

# Record attributes (passed via `extra=`) promoted to Cloud Logging labels
LABEL_KEYS = ("game_id", "story_id", "action")

class GoogleCloudFormatter(logging.Formatter):
    """
    Formats logs into JSON for Google Cloud Logging.
    Maps Python log levels to GCP 'severity' and tags every entry with the
    service name, plus the game it concerns when one is given.
    """
    def __init__(self, service: str = None):
        super().__init__()
        self.service = service

    def format(self, record):
        severity_map = {
            'DEBUG': 'DEBUG',
            'INFO': 'INFO',
            'WARNING': 'WARNING',
            'ERROR': 'ERROR',
            'CRITICAL': 'CRITICAL'
        }

        json_log = {
            "severity": severity_map.get(record.levelname, 'DEFAULT'),
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": record.created,
            "logging.googleapis.com/sourceLocation": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName
            }
        }

        labels = {"service": self.service} if self.service else {}
        for key in LABEL_KEYS:
            value = getattr(record, key, None)
            if value:
                labels[key] = str(value)
        if labels:
            json_log["logging.googleapis.com/labels"] = labels

        if record.exc_info:
            text_trace = self.formatException(record.exc_info)
            json_log["message"] += f"\n{text_trace}"
            # GCP looks for 'stack_trace' for error grouping
            json_log["stack_trace"] = text_trace

        return json.dumps(json_log)

def setup_logging(level: str = "INFO", service: str = None):
    """Configures the root logger to output JSON to stdout."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(GoogleCloudFormatter(service))
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
