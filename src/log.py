import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from settings import Settings

LOGGER_NAME = "MusicScout"

# Fields every LogRecord carries. Anything else arrived through extra={...}.
_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and value is not None
    }


class ConsoleFormatter(logging.Formatter):
    """
    Short human-readable lines. The fields that identify a request (query,
    track id, strategy, status) are appended as key=value pairs.
    """

    CONTEXT_KEYS = ("query", "track_id", "strategy", "status", "error")

    def __init__(self):
        super().__init__("[%(asctime)s] %(levelname)s - %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        pairs = [f"{key}={context[key]!r}" for key in self.CONTEXT_KEYS if key in context]
        if pairs:
            line = f"{line} ({' '.join(pairs)})"
        return line


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line. Scraped documents never reach the log file in
    full: document fields are replaced by their size and other long strings
    are cut to a preview.
    """

    DOCUMENT_KEYS = {"html", "script", "body", "payload"}
    PREVIEW_CHARS = 200
    MAX_STRING_CHARS = 1024

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        context = {
            key: self._clean(key, value)
            for key, value in _context(record).items()
            if value != ""
        }
        if context:
            entry["extra"] = context

        return json.dumps(entry, separators=(",", ":"), ensure_ascii=False)

    def _clean(self, key: str, value: Any) -> Any:
        if isinstance(value, bytes):
            return f"<{len(value)} bytes>"
        if isinstance(value, str):
            if key in self.DOCUMENT_KEYS and len(value) > self.PREVIEW_CHARS:
                return f"<document trimmed: {len(value)} chars>"
            if len(value) > self.MAX_STRING_CHARS:
                return f"{value[: self.PREVIEW_CHARS]}... <{len(value) - self.PREVIEW_CHARS} chars trimmed>"
            return value
        if isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, dict):
            return {str(k): self._clean(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._clean(key, item) for item in value]
        return str(value)


def _prune_logs(
    log_dir: Path,
    max_count: int = Settings.LOG_FILE_MAX_COUNT,
    max_age_days: int = Settings.LOG_FILE_MAX_AGE_DAYS,
    now: Optional[float] = None,
):
    """Keeps the newest max_count log files and drops any older than max_age_days."""
    now = time.time() if now is None else now
    try:
        files = sorted(log_dir.glob("*.json"), key=lambda p: p.stat().st_mtime, reverse=True)
        for index, path in enumerate(files):
            too_many = max_count > 0 and index >= max_count
            too_old = max_age_days > 0 and now - path.stat().st_mtime > max_age_days * 86400
            if too_many or too_old:
                path.unlink()
    except OSError as e:
        logging.getLogger(LOGGER_NAME).error(
            "Error pruning logs.", extra={"path": str(log_dir), "error": str(e)}
        )


def setup_logging() -> logging.Logger:
    """
    Configures the application logger with a console handler and a JSON file
    handler, one file per run.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.hasHandlers():
        return logger
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if Settings.LOG_CONSOLE_ENABLED:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(Settings.LOG_CONSOLE_LEVEL)
        console_handler.setFormatter(ConsoleFormatter())
        logger.addHandler(console_handler)

    if Settings.LOG_FILE_ENABLED:
        log_dir = Path(Settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        _prune_logs(log_dir)
        log_path = log_dir / datetime.now().strftime("%Y-%m-%dT%H-%M-%S.json")

        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        file_handler.setLevel(Settings.LOG_FILE_LEVEL)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("Logging configured.", extra={"log_dir": Settings.LOG_DIR})
    return logger
