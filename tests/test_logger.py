"""
Tests for logger functionality.
"""

import pytest

from talentrank.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        assert logger.logger.name == "test"
        assert logger.metrics["matches_attempted"] == 0

    def test_log_file_contains_context(self, tmp_path):
        logger = StructuredLogger(name="test-file", log_dir=tmp_path, enable_console=False)
        logger.info("Ranking generated", job_id=3, candidates=12)

        log_files = list(tmp_path.glob("talentrank_*.log"))
        assert len(log_files) == 1
        content = log_files[0].read_text()
        assert "Ranking generated" in content
        assert '"candidates": 12' in content
        assert '"job_id": 3' in content

    def test_match_metrics(self):
        logger = StructuredLogger(name="test-metrics", enable_file=False, enable_console=False)
        for _ in range(3):
            logger.record_match_attempt(7)
        logger.record_match_success(7)
        logger.record_match_success(7)
        logger.record_match_failure(7, "NoResumeError")

        metrics = logger.get_metrics()
        assert metrics["matches_attempted"] == 3
        assert metrics["matches_successful"] == 2
        assert metrics["matches_failed"] == 1
        assert metrics["errors_by_type"] == {"NoResumeError": 1}
        assert metrics["job_success_rate"]["7"]["success_rate"] == pytest.approx(0.667, rel=0.01)

    def test_ranking_metrics(self):
        logger = StructuredLogger(name="test-metrics", enable_file=False, enable_console=False)
        logger.record_ranking(10)
        logger.record_ranking(4)
        assert logger.metrics["rankings_generated"] == 2
        assert logger.metrics["candidates_ranked"] == 14

    def test_summary_does_not_raise(self):
        logger = StructuredLogger(name="test-summary", enable_file=False, enable_console=False)
        logger.record_match_attempt(1)
        logger.record_match_failure(1, "NotFoundError")
        logger.log_metrics_summary()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self):
        reset_logger()
        logger1 = get_logger(enable_file=False, enable_console=False)
        assert get_logger() is logger1

    def test_reset_logger(self):
        reset_logger()
        logger1 = get_logger(enable_file=False, enable_console=False)
        logger1.record_ranking(5)
        reset_logger()
        logger2 = get_logger(enable_file=False, enable_console=False)
        assert logger2 is not logger1
        assert logger2.metrics["candidates_ranked"] == 0
