"""
Structured logging of store events.

Each CLI invocation appends one JSON object per event to a ``.jsonl`` file,
tagged with the invocation's session context, so runs can be audited or
replayed without parsing console output.
"""

import json
import logging
import sys
import time
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO


class StructuredLogger:
    """
    Writes events as JSON lines and, optionally, as ``key=value`` log records.

    Usage:
        logger = StructuredLogger("appstore_cli.events", log_dir=Path("logs"))
        logger.set_session_context(command="download")
        logger.info("download_ticket_issued", app_id=284882215, version="1.2")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Name of the stdlib logger used for console records.
            log_dir: Directory for the JSONL file; no file is written when None.
            enable_console: Mirror every event to the stdlib logger.
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_console = enable_console
        self.json_path: Path | None = None
        if log_dir is not None:
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_path = log_dir / f"appstore_cli_{stamp}.jsonl"

        self._logger = logging.getLogger(name)
        self._json_file: TextIO | None = None
        self._counts: Counter[str] = Counter()
        self._started = time.monotonic()
        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
            "start_time": datetime.now().isoformat(),
        }

    @property
    def event_counts(self) -> dict[str, int]:
        """Number of events logged so far, per level name."""
        return dict(self._counts)

    def set_session_context(self, **kwargs) -> None:
        """Adds fields that are repeated on every following JSON entry."""
        self._session_context.update(kwargs)

    def _open(self) -> TextIO | None:
        # The file is only created once there is something to write.
        if self._json_file is None and self.json_path is not None:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            self._json_file = open(self.json_path, "a", encoding="utf-8")  # noqa: SIM115
        return self._json_file

    def _write_json(self, level: str, event: str, context: dict[str, Any]) -> None:
        stream = self._open()
        if stream is None or stream.closed:
            return
        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }
        try:
            stream.write(json.dumps(entry, default=str) + "\n")
            stream.flush()
        except (OSError, TypeError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _log(self, level: int, event: str, **context) -> None:
        level_name = logging.getLevelName(level)
        self._counts[level_name] += 1
        if self.enable_console:
            fields = " ".join(f"{key}={value}" for key, value in context.items())
            self._logger.log(level, f"[{event}] {fields}".rstrip())
        self._write_json(level_name, event, context)

    def debug(self, event: str, **context) -> None:
        self._log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._log(logging.ERROR, event, **context)

    def close(self) -> None:
        """Appends a ``session_closed`` summary entry and closes the file."""
        if self._json_file is None or self._json_file.closed:
            return
        self._write_json(
            "INFO",
            "session_closed",
            {
                "duration_s": round(time.monotonic() - self._started, 3),
                "events": dict(self._counts),
            },
        )
        self._json_file.close()

    def __enter__(self) -> "StructuredLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class StoreEventLogger:
    """
    Specialized logger for store events.

    Only identifiers are recorded; passwords, tokens and cookie values never
    reach the log.
    """

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def login_succeeded(self, email: str, store_front: str, pod: str | None):
        self.logger.info(
            "login_succeeded", email=email, store_front=store_front, pod=pod
        )

    def login_code_required(self, email: str):
        self.logger.info("login_code_required", email=email)

    def session_refreshed(self, email: str, operation: str):
        self.logger.warning("session_refreshed", email=email, operation=operation)

    def download_ticket_issued(
        self, email: str, app_id: int, version: str, build: str, sinf_count: int
    ):
        self.logger.info(
            "download_ticket_issued",
            email=email,
            app_id=app_id,
            version=version,
            build=build,
            sinf_count=sinf_count,
        )

    def purchase_completed(self, email: str, app_id: int, pricing_parameter: str):
        self.logger.info(
            "purchase_completed",
            email=email,
            app_id=app_id,
            pricing_parameter=pricing_parameter,
        )

    def operation_failed(
        self, email: str, operation: str, error: Exception, code: str | None = None
    ):
        self.logger.error(
            "operation_failed",
            email=email,
            operation=operation,
            error_type=type(error).__name__,
            kind=getattr(getattr(error, "kind", None), "value", None),
            code=code,
        )


def create_structured_logger(
    log_dir: Path | None = None,
) -> tuple[StructuredLogger, StoreEventLogger]:
    """
    Create the structured loggers.

    Returns:
        Tuple of (base_logger, store_event_logger)
    """
    base = StructuredLogger("appstore_cli.events", log_dir=log_dir, enable_console=False)
    return base, StoreEventLogger(base)
