from pathlib import Path

from papertriage.utils.logging_config import (
    LogFiles,
    Logger,
    clear_trace_id,
    get_trace_id,
    set_trace_id,
)


def test_named_log_files():
    assert LogFiles.COLLECT == "collect/collect.log"
    assert LogFiles.ERROR == "errors/error.log"
    assert LogFiles.get("unknown") == "unknown/unknown.log"


def test_logger_writes_with_trace_id(tmp_path):
    trace_id = set_trace_id("run-test")
    try:
        Logger.info("hello collection", file=LogFiles.COLLECT)
    finally:
        clear_trace_id()

    text = (Path(tmp_path) / "logs" / "collect" / "collect.log").read_text(encoding="utf-8")
    assert "[INFO] [run-test]" in text
    assert "hello collection" in text
    assert trace_id == "run-test"
    assert get_trace_id() is None


def test_level_filtering(tmp_path):
    Logger.set_level("WARNING")
    Logger.info("dropped", file=LogFiles.SCORING)
    Logger.warning("kept", file=LogFiles.SCORING)
    text = (Path(tmp_path) / "logs" / "scoring" / "scoring.log").read_text(encoding="utf-8")
    assert "dropped" not in text
    assert "kept" in text


def test_generated_trace_ids_are_unique():
    first = set_trace_id()
    second = set_trace_id()
    clear_trace_id()
    assert first.startswith("run-")
    assert first != second
