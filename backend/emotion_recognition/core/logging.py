import logging
import logging.handlers
import sys
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from emotion_recognition.core.config import settings

# --- Logging Configuration ---

LOG_DIR      = Path(settings.LOG_DIR)
LOG_FILE     = LOG_DIR / "app.log"
LOG_LEVEL    = settings.LOG_LEVEL.upper()
ENVIRONMENT  = settings.ENVIRONMENT

LOG_MAX_BYTES    = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5

# Extra attributes copied into the JSON line when a caller passes them via `extra=`
CONTEXT_FIELDS = ("user_id", "session_id", "emotion_id", "endpoint", "duration_ms")


class DevFormatter(logging.Formatter):

    LEVEL_COLORS = {
        "DEBUG"    : "\033[94m",   # BLUE
        "INFO"     : "\033[92m",   # GREEN
        "WARNING"  : "\033[93m",   # YELLOW
        "ERROR"    : "\033[91m",   # RED
        "CRITICAL" : "\033[95m",   # MAGENTA
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:

        color     = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level     = f"{color}{record.levelname:<8}{self.RESET}"
        name      = record.name[:40]

        message = record.getMessage()

        # Traceback goes on the following lines
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return f"{timestamp} | {level} | {name:<40} | {message}"


class JSONFormatter(logging.Formatter):

    """
    Production formatter: one JSON line per event so log aggregators
    can query individual fields.

    Example line:
    {
        "timestamp": "2026-02-25T10:32:11.123Z",
        "level": "INFO",
        "logger": "emotion_recognition.services.aggregator",
        "message": "Observation recorded",
        "environment": "production",
        "service": "emotion-recognition-backend",
        "session_id": 12
    }
    """

    def format(self, record: logging.LogRecord) -> str:

        log_entry: dict[str, Any] = {
            "timestamp"   : datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level"       : record.levelname,
            "logger"      : record.name,
            "message"     : record.getMessage(),
            "environment" : ENVIRONMENT,
            "service"     : "emotion-recognition-backend",
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:

            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False)


# Main SetUp

def setup_logging() -> None:

    """
    Initialize the application's logging system.

    Must be called only ONCE, from the lifespan in main.py.

    Configures two handlers:

    - StreamHandler: stdout -> docker compose logs
    - RotatingFileHandler: LOG_DIR/app.log -> volume on the host machine
    """

    formatter = JSONFormatter() if ENVIRONMENT == "production" else DevFormatter()

    numeric_level = getattr(logging, LOG_LEVEL, logging.INFO)

    # --- Handler 1: stdout ---
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(numeric_level)
    stream_handler.setFormatter(formatter)

    # --- Handler 2: rotating file ---
    file_error = None
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename    = LOG_FILE,
            maxBytes    = LOG_MAX_BYTES,
            backupCount = LOG_BACKUP_COUNT,
            encoding    = "utf-8"
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        handlers = [stream_handler, file_handler]
    except OSError as e:
        # Log directory not mounted or not writable: keep stdout only
        handlers = [stream_handler]
        file_error = e

    logging.basicConfig(
        level    = numeric_level,
        handlers = handlers,
        force    = True   # uvicorn installs its handlers first
    )

    # Noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

    logger = logging.getLogger(__name__)

    if file_error is not None:
        logger.warning(
            f"Could not open log file {LOG_FILE}: {file_error}. "
            f"Continuing with stdout only."
        )

    logger.info(
        f"Logging initialized. "
        f"env={ENVIRONMENT}  level={LOG_LEVEL}  "
        f"file={LOG_FILE}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger named after the calling module.
    """
    return logging.getLogger(name)
