"""Unit tests for structured logging."""

import json
import logging

from character_library.api.logging import GenerationLogger, JSONFormatter


def _record(message="hello", **extra):
    record = logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "hello"
        assert data["timestamp"].endswith("Z")

    def test_structured_extras(self):
        data = json.loads(JSONFormatter().format(_record(job_id="job-1", shot_id="50_front_cu", attempt=2)))

        assert data["job_id"] == "job-1"
        assert data["shot_id"] == "50_front_cu"
        assert data["attempt"] == 2

    def test_unknown_extras_are_dropped(self):
        data = json.loads(JSONFormatter().format(_record(secret="x")))

        assert "secret" not in data


class TestGenerationLogger:
    def test_shot_failed_logs_warning_with_context(self, caplog):
        with caplog.at_level(logging.INFO, logger="reference_generation"):
            GenerationLogger().shot_failed("job-1", "85_front_mcu", "SynthesisFailure", "timed out")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.shot_id == "85_front_mcu"
        assert record.error_type == "SynthesisFailure"

    def test_job_completed_rounds_duration(self, caplog):
        with caplog.at_level(logging.INFO, logger="reference_generation"):
            GenerationLogger().job_completed("job-1", generated=6, failed=3, duration=12.3456)

        record = caplog.records[-1]
        assert record.getMessage() == "Job completed: 6 generated, 3 failed"
        assert record.duration == 12.35
