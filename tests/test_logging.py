"""Tests for logging infrastructure."""
import logging

import pytest
import structlog
from structlog.testing import LogCapture

from shiftplan.utils.logging_setup import (
    TRACE,
    WorkflowLogger,
    get_logger,
    log_check,
    log_function_call,
    setup_logging,
)
from shiftplan.utils.structured_logging import (
    bind_context,
    clear_context,
    configure_structlog,
    get_structured_logger,
    request_context,
)


class TestLoggingSetup:
    """Tests for setup_logging."""

    def test_console_and_file_handlers(self, tmp_path):
        logger = setup_logging(level="DEBUG", log_file=str(tmp_path / "shiftplan.log"), console_level="WARNING")

        assert logger.name == "shiftplan"
        console, file_handler = logger.handlers
        assert console.level == logging.WARNING
        assert file_handler.level == logging.DEBUG

    def test_file_created_in_missing_directory(self, tmp_path):
        log_file = tmp_path / "nested" / "logs" / "shiftplan.log"
        logger = setup_logging(level="INFO", log_file=str(log_file))
        get_logger("shiftplan.workflow.swaps").info("Swap s1 approved by m1")

        assert "shiftplan.workflow.swaps" in log_file.read_text(encoding="utf-8")
        assert "Swap s1 approved by m1" in log_file.read_text(encoding="utf-8")

    def test_console_only(self):
        logger = setup_logging(level="INFO", log_file=None)
        assert len(logger.handlers) == 1

    def test_reconfiguring_replaces_handlers(self, tmp_path):
        setup_logging(level="INFO", log_file=str(tmp_path / "a.log"))
        logger = setup_logging(level="INFO", log_file=None)
        assert len(logger.handlers) == 1

    def test_trace_level(self):
        assert TRACE == 5
        assert logging.getLevelName(TRACE) == "TRACE"
        logger = setup_logging(level="TRACE", log_file=None)
        assert logger.handlers[0].level == TRACE

    def test_get_logger(self):
        assert get_logger("shiftplan.analysis.fairness").name == "shiftplan.analysis.fairness"


class TestLogFunctionCall:
    """Tests for function call decorator."""

    def test_decorator_logs_entry_exit(self, caplog):
        @log_function_call
        def add(a, b):
            return a + b

        with caplog.at_level(TRACE):
            result = add(1, 2)

        assert result == 3
        assert "→ add(1, 2)" in caplog.text
        assert "← add returned: 3" in caplog.text

    def test_decorator_logs_exceptions(self, caplog):
        @log_function_call
        def fail():
            raise ValueError("test error")

        with pytest.raises(ValueError):
            fail()
        assert "fail raised: ValueError: test error" in caplog.text

    def test_decorator_preserves_function_name(self):
        @log_function_call
        def my_function():
            """Docstring."""

        assert my_function.__name__ == "my_function"
        assert my_function.__doc__ == "Docstring."


class TestLogCheck:
    """Tests for business-rule check logging."""

    def test_passing_check(self, caplog):
        logger = logging.getLogger("test")

        with caplog.at_level(logging.DEBUG):
            log_check(logger, "same_date", True, "2024-06-05")

        assert "[✓] same_date (2024-06-05)" in caplog.text

    def test_failing_check_is_a_warning(self, caplog):
        logger = logging.getLogger("test")

        with caplog.at_level(logging.WARNING):
            log_check(logger, "min_staffing[early]", False, "1→0 of 1")

        assert caplog.records[-1].levelno == logging.WARNING
        assert "[✗] min_staffing[early]" in caplog.text


class TestWorkflowLogger:
    def test_phase_and_step(self, caplog):
        wf = WorkflowLogger("test.workflow")

        with caplog.at_level(logging.INFO):
            wf.phase("SWAP REQUEST")
            wf.step("u1 → u2")

        assert "SWAP REQUEST" in caplog.text
        assert "▸ u1 → u2" in caplog.text

    def test_nested_context(self, caplog):
        wf = WorkflowLogger("test.workflow")

        with caplog.at_level(logging.DEBUG):
            wf.enter("Group g1")
            wf.detail("days", 3)
            wf.exit("Group g1 done")

        assert "┌─" in caplog.text
        assert "└─" in caplog.text
        assert wf.indent == 0


class TestStructuredLogging:
    """Tests for the structlog helpers."""

    def teardown_method(self):
        clear_context()
        structlog.reset_defaults()

    def test_bound_context_is_merged(self):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
        bind_context(request_id="r1", team_id="t1")
        get_structured_logger("test").info("swap_approved", reviewer_id="m1")

        entry = capture.entries[0]
        assert entry["event"] == "swap_approved"
        assert entry["request_id"] == "r1"
        assert entry["reviewer_id"] == "m1"

    def test_request_context_is_scoped(self):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
        bind_context(team_id="t1")
        log = get_structured_logger("test")

        with request_context(request_id="r2", team_id="t2"):
            log.info("inside")
        log.info("outside")

        inside, outside = capture.entries
        assert inside["request_id"] == "r2"
        assert inside["team_id"] == "t2"
        assert "request_id" not in outside
        assert outside["team_id"] == "t1"

    def test_clear_context(self):
        bind_context(request_id="r1")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_json_output(self, capsys):
        configure_structlog(json_output=True)
        get_structured_logger("test").info("fairness_analyzed", users=3)
        out = capsys.readouterr().out
        assert '"event": "fairness_analyzed"' in out
        assert '"users": 3' in out


class TestLogRotation:
    def test_rotates_when_file_is_full(self, tmp_path):
        log_file = tmp_path / "shiftplan.log"
        logger = setup_logging(level="DEBUG", log_file=str(log_file), max_bytes=1000, backup_count=2)

        for i in range(100):
            logger.info(f"Fairness analysis {i}: " + "x" * 50)

        backups = sorted(p.name for p in tmp_path.glob("shiftplan.log.*"))
        assert backups == ["shiftplan.log.1", "shiftplan.log.2"]
