from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Iterable

# third-party loggers that only matter when something is wrong
NOISY_LOGGERS = ("httpx", "httpcore", "multipart", "python_multipart", "fitz")


class _ColorFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\033[90m",     # gray
        logging.INFO: "\033[94m",      # blue
        logging.WARNING: "\033[93m",   # yellow
        logging.ERROR: "\033[91m",     # red
        logging.CRITICAL: "\033[95m",  # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # copy so the file handler still sees a plain levelname
        colored = logging.makeLogRecord(record.__dict__)
        tint = self.COLORS.get(colored.levelno, self.RESET)
        colored.levelname = f"{tint}{colored.levelname:<7}{self.RESET}"
        return super().format(colored)


class _RedactSecrets(logging.Filter):
    """Masks bearer tokens and provider keys if they ever reach a log line."""

    PATTERNS = (
        re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+"),
        re.compile(r"\b(sk-(?:or-)?(?:v1-)?)[A-Za-z0-9]{8,}"),
    )

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        clean = msg
        for pat in self.PATTERNS:
            clean = pat.sub(r"\1***", clean)
        if clean != msg:
            record.msg, record.args = clean, None
        return True


class _DropAccessNoise(logging.Filter):
    """Hides static assets and state reads from access logs."""

    DROP_SUBSTRINGS = (
        "GET /static/",
        "GET /favicon.ico",
        "GET /api/quiz/state",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        return not any(s in msg for s in self.DROP_SUBSTRINGS)


def _level(name: str, default: int) -> int:
    return getattr(logging, (name or "").upper(), default)


def _quiet(names: Iterable[str]) -> None:
    for name in names:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(
    *,
    log_dir: str = "logs",
    log_file: str = "quizgen.log",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
) -> Path:
    """
    Console (colored, short) + rotating file (detailed) on the root logger.

    Safe to call twice: existing root handlers are replaced. Returns the log file path.
    """
    log_path = Path(log_dir) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    redact = _RedactSecrets()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_level(console_level, logging.INFO))
    console.setFormatter(_ColorFormatter(fmt="%(asctime)s %(levelname)s %(message)s", datefmt="%H:%M:%S"))
    console.addFilter(redact)
    root.addHandler(console)

    rotating = logging.handlers.RotatingFileHandler(
        filename=str(log_path),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    rotating.setLevel(_level(file_level, logging.DEBUG))
    rotating.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    rotating.addFilter(redact)
    root.addHandler(rotating)

    _quiet(NOISY_LOGGERS)
    logging.getLogger("uvicorn.access").addFilter(_DropAccessNoise())

    root.debug("Logging initialized. log_path=%s", log_path.resolve())
    return log_path
