"""Unit tests for error reporting."""

from structlog.testing import CapturingLogger

from shared.observability import ErrorReporter, ReportLevel, report_level_from_http


def test_report_level_from_http() -> None:
    assert report_level_from_http(200) == ReportLevel.INFO
    assert report_level_from_http(404) == ReportLevel.WARNING
    assert report_level_from_http(500) == ReportLevel.ERROR


def test_capture_exception() -> None:
    logger = CapturingLogger()
    reporter = ErrorReporter(logger=logger)

    try:
        raise ValueError("bad value")
    except ValueError as e:
        report_id = reporter.capture_exception(e, context={"request_id": "r1"})

    assert len(logger.calls) == 1
    call = logger.calls[0]
    assert call.method_name == "error"
    assert call.args == ("Error captured",)
    assert call.kwargs["report_id"] == report_id
    assert call.kwargs["error_type"] == "ValueError"
    assert call.kwargs["context"] == {"request_id": "r1"}
    assert "bad value" in call.kwargs["stacktrace"]


def test_capture_message_levels() -> None:
    logger = CapturingLogger()
    reporter = ErrorReporter(logger=logger)

    reporter.capture_message("HTTP Error", level=ReportLevel.WARNING)
    reporter.capture_message("Process exiting", level=ReportLevel.FATAL)

    assert [c.method_name for c in logger.calls] == ["warning", "critical"]
    assert logger.calls[0].args == ("HTTP Error",)
