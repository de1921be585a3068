"""Tests for structured log formatting."""

import logging

from press_engine.core.logging import StructuredFormatter, log_with_context


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


def _capture(name: str):
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    handler = CaptureHandler()
    logger.addHandler(handler)
    return logger, handler


def test_context_fields_follow_message():
    logger, handler = _capture("press_engine.test.context")

    log_with_context(
        logger, logging.WARNING, "Retrieval stage failed",
        stage="semantic-json", user_id="u1", attempt=2,
    )

    line = StructuredFormatter().format(handler.records[0])
    assert "level=WARNING" in line
    assert "logger=press_engine.test.context" in line
    assert line.index("message=Retrieval stage failed") < line.index("user_id=u1")
    assert line.index("user_id=u1") < line.index("stage=semantic-json")
    assert line.endswith("attempt=2")


def test_plain_records_have_no_context_keys():
    logger, handler = _capture("press_engine.test.plain")

    logger.info("Supabase client ready")

    line = StructuredFormatter().format(handler.records[0])
    assert "message=Supabase client ready" in line
    assert "user_id=" not in line
    assert "run_id=" not in line


def test_run_id_from_extra_is_kept():
    logger, handler = _capture("press_engine.test.run")

    logger.debug("Chain run finished", extra={"run_id": "abc123"})

    assert "run_id=abc123" in StructuredFormatter().format(handler.records[0])


def test_exception_traceback_is_appended():
    logger, handler = _capture("press_engine.test.exc")

    try:
        raise ValueError("bad row")
    except ValueError:
        logger.exception("Insert failed")

    line = StructuredFormatter().format(handler.records[0])
    assert line.startswith("timestamp=")
    assert "ValueError: bad row" in line
