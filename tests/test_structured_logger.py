"""Tests for the JSONL event log."""

import json

from appstore_cli.exceptions import DownloadError, FailureKind
from appstore_cli.utils.structured_logger import create_structured_logger


def read_entries(base) -> list[dict]:
    return [json.loads(line) for line in base.json_path.read_text().splitlines()]


def test_events_are_written_with_session_context(tmp_path) -> None:
    base, events = create_structured_logger(tmp_path)
    base.set_session_context(command="download")

    events.download_ticket_issued("user@example.com", 1, "2.1.0", "210", 1)
    events.operation_failed(
        "user@example.com",
        "download",
        DownloadError("x", FailureKind.LICENSE_REQUIRED, code="9610"),
        "9610",
    )
    base.close()

    issued, failed, closed = read_entries(base)
    assert issued["event"] == "download_ticket_issued"
    assert issued["command"] == "download"
    assert failed["level"] == "ERROR"
    assert failed["kind"] == "license_required"
    assert closed["event"] == "session_closed"
    assert closed["events"] == {"INFO": 1, "ERROR": 1}


def test_no_file_without_log_dir() -> None:
    base, events = create_structured_logger(None)

    events.login_code_required("user@example.com")
    base.close()

    assert base.json_path is None
    assert base.event_counts == {"INFO": 1}


def test_file_is_created_lazily(tmp_path) -> None:
    base, _ = create_structured_logger(tmp_path / "logs")
    base.close()

    assert not (tmp_path / "logs").exists()
