"""
Tests for structured logging and the exception hierarchy.
"""

import json
import logging

import pytest

from buildtrack_engine.exceptions import (
    BuildTrackError,
    ConfigurationError,
    ErrorCategory,
    ErrorSeverity,
    HistoryFormatError,
    SamplingError,
)
from buildtrack_engine.logger import JSONFormatter, get_logger


@pytest.fixture
def production_logger(tmp_path):
    logger = get_logger(run_id="run-123", log_level="DEBUG", log_dir=tmp_path)
    yield logger
    logger.close()


def _read_lines(path):
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestProductionLogger:
    """JSON log file output."""

    def test_structured_fields_written(self, production_logger, tmp_path):
        production_logger.info("Stage completed", stage="compile", duration_millis=3200)
        for handler in production_logger.logger.handlers:
            handler.flush()

        (entry,) = _read_lines(tmp_path / "buildtrack.log")
        assert entry["run_id"] == "run-123"
        assert entry["level"] == "INFO"
        assert entry["message"] == "Stage completed"
        assert entry["stage"] == "compile"
        assert entry["duration_millis"] == 3200

    def test_exception_block(self, production_logger, tmp_path):
        try:
            raise RuntimeError("analyzer exploded")
        except RuntimeError:
            production_logger.exception("bottleneck analysis failed", analyzer="bottleneck")
        for handler in production_logger.logger.handlers:
            handler.flush()

        (entry,) = _read_lines(tmp_path / "buildtrack.log")
        assert entry["level"] == "ERROR"
        assert entry["exception"]["type"] == "RuntimeError"
        assert "analyzer exploded" in entry["exception"]["traceback"]

    def test_level_filtering(self, tmp_path):
        logger = get_logger(run_id="quiet", log_level="WARNING", log_dir=tmp_path, json_file="q.log")
        try:
            logger.info("hidden")
            logger.warning("shown")
            for handler in logger.logger.handlers:
                handler.flush()
            assert [e["message"] for e in _read_lines(tmp_path / "q.log")] == ["shown"]
        finally:
            logger.close()

    def test_generated_run_id(self, tmp_path):
        logger = get_logger(log_dir=tmp_path)
        try:
            assert logger.get_run_id()
            assert logger.logger.name == f"buildtrack.{logger.get_run_id()}"
        finally:
            logger.close()

    def test_start_run_switches_id_and_context(self, production_logger, tmp_path):
        production_logger.bind(stage="compile")
        production_logger.info("before")
        new_id = production_logger.start_run(started_at=1_000)
        production_logger.info("after", stage="test")
        for handler in production_logger.logger.handlers:
            handler.flush()

        before, after = _read_lines(tmp_path / "buildtrack.log")
        assert before["run_id"] == "run-123"
        assert before["stage"] == "compile"
        assert after["run_id"] == new_id != "run-123"
        assert after["started_at"] == 1_000
        assert after["stage"] == "test"

    def test_unwritable_log_dir_keeps_console(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        logger = get_logger(log_dir=blocker / "logs", log_level="CRITICAL")
        try:
            assert not logger.file_logging
            assert len(logger.logger.handlers) == 1
            logger.error("still works")
        finally:
            logger.close()

    def test_formatter_plain_record(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
        data = json.loads(JSONFormatter("r1").format(record))
        assert data["message"] == "hello world"
        assert "exception" not in data


class TestExceptions:
    """Exception hierarchy and serialization."""

    def test_base_defaults(self):
        error = BuildTrackError("boom")
        assert error.category is ErrorCategory.ANALYSIS
        assert error.severity is ErrorSeverity.ERROR
        assert error.to_dict()["original_exception"] is None

    def test_subclass_categories(self):
        assert ConfigurationError("x", config_path="a.yaml").category is ErrorCategory.CONFIGURATION
        assert HistoryFormatError("x").severity is ErrorSeverity.WARNING
        assert SamplingError("x").severity is ErrorSeverity.RECOVERABLE

    def test_to_dict_includes_context_and_cause(self):
        error = ConfigurationError(
            "Invalid", config_path="tracker.yaml", original_exception=ValueError("bad")
        )
        data = error.to_dict()
        assert data["error_type"] == "ConfigurationError"
        assert data["category"] == "configuration"
        assert data["context"]["path"] == "tracker.yaml"
        assert data["original_exception"] == "ValueError: bad"
        assert "tracker.yaml" in data["message"]
