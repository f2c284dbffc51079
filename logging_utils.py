# logging_utils.py
import json, os, sys, logging
from logging.handlers import RotatingFileHandler
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes passed via `extra=` that we surface as top-level JSON keys
CONTEXT_FIELDS = ("city", "endpoint", "location", "rows", "cached")

class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "module": record.module,
        }
        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def setup_logging(level: str = "INFO", log_dir: str = "./logs", log_file: str = "healthguard.log"):
    root = logging.getLogger()
    root.setLevel(level.upper())
    formatter = JsonFormatter()

    # Console
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level.upper())
    ch.setFormatter(formatter)
    root.addHandler(ch)

    # File (rotating); skipped when LOG_DIR is blank
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = RotatingFileHandler(os.path.join(log_dir, log_file), maxBytes=10_000_000, backupCount=3, encoding="utf-8")
        fh.setLevel(level.upper())
        fh.setFormatter(formatter)
        root.addHandler(fh)

    # Silence noisy libs a bit
    for noisy in ("urllib3", "requests", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
