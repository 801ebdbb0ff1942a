from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

LOGGER_NAME = "vdadeploy"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)
        return json.dumps(payload, sort_keys=True, default=str)


class ConsoleFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict) and extra_fields:
            details = " ".join(f"{key}={value}" for key, value in sorted(extra_fields.items()))
            line = f"{line} {details}"
        return line


class AppendFileHandler(logging.FileHandler):
    """File handler that appends one record at a time.

    The log usually lives on the target's administrative share, which drops
    open handles on every reboot, so the file is opened (creating missing
    parent directories), written and closed again for each record. Write
    failures go to ``handleError`` and never interrupt the run.
    """

    def __init__(self, log_path: Path) -> None:
        super().__init__(log_path, mode="a", encoding="utf-8", delay=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
            self.stream = self._open()
        except OSError:
            self.handleError(record)
            return
        try:
            logging.StreamHandler.emit(self, record)
        finally:
            stream, self.stream = self.stream, None
            try:
                stream.close()
            except OSError:
                self.handleError(record)


def setup_logger(log_path: Path) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    file_handler = AppendFileHandler(log_path)
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(stream_handler)
    return logger


def log_with_fields(logger: logging.Logger, level: int, message: str, **fields: object) -> None:
    logger.log(level, message, extra={"extra_fields": fields})
