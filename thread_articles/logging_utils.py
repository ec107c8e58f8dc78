"""Logging setup for long-running article jobs.

A job can outlive the terminal that started it (nohup, closed SSH session,
output piped into `head`). SafeStreamHandler drops console records once
stdout is gone so the batch keeps going; the optional job log file keeps
receiving everything.
"""
import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SafeStreamHandler(logging.StreamHandler):
    """StreamHandler that ignores broken pipe and closed file errors."""

    def emit(self, record):
        try:
            super().emit(record)
        except BrokenPipeError:
            pass  # stdout closed
        except ValueError:
            pass  # I/O operation on closed file


def configure_safe_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Attach a SafeStreamHandler (and optionally a job log file) to the root logger.

    Idempotent: repeated calls never stack duplicate console handlers, and a
    given log file is only attached once.

    Args:
        level: Logging level for the new handlers (default: INFO)
        log_file: Optional path of a job log; parent dirs are created

    Returns:
        The root logger
    """
    root = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(isinstance(h, SafeStreamHandler) for h in root.handlers):
        handler = SafeStreamHandler()
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)

    if log_file is not None:
        log_path = Path(log_file).resolve()
        already_attached = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_path
            for h in root.handlers
        )
        if not already_attached:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            file_handler.setLevel(level)
            root.addHandler(file_handler)

    # The OpenAI SDK may leave the root logger at WARNING after import.
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)

    return root
