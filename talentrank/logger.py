"""
Structured logging system for talentrank.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring matching and ranking runs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for matching batches and ranking runs.
    """

    def __init__(
        self,
        name: str = "talentrank",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "matches_attempted": 0,
            "matches_successful": 0,
            "matches_failed": 0,
            "rankings_generated": 0,
            "candidates_ranked": 0,
            "errors_by_type": {},
            "job_success_rate": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"talentrank_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

        if not enable_console and not enable_file:
            self.logger.addHandler(logging.NullHandler())

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str, sort_keys=True)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_match_attempt(self, job_id):
        """Record a scoring attempt for a job."""
        self.metrics["matches_attempted"] += 1
        key = str(job_id)
        if key not in self.metrics["job_success_rate"]:
            self.metrics["job_success_rate"][key] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["job_success_rate"][key]["attempts"] += 1

    def record_match_success(self, job_id):
        self.metrics["matches_successful"] += 1
        key = str(job_id)
        if key in self.metrics["job_success_rate"]:
            self.metrics["job_success_rate"][key]["successes"] += 1

    def record_match_failure(self, job_id, error_type: str):
        self.metrics["matches_failed"] += 1
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_ranking(self, candidates: int):
        """Record a completed ranking run."""
        self.metrics["rankings_generated"] += 1
        self.metrics["candidates_ranked"] += candidates

    def get_metrics(self) -> dict:
        """Return current metrics with per-job success rates filled in."""
        metrics_copy = self.metrics.copy()
        for job_id, stats in metrics_copy["job_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["matches_attempted"]
        total_successes = metrics["matches_successful"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Matching Session Metrics ===")
        self.info(f"Matches: {total_successes}/{total_attempts} ({overall_rate}% success)")
        self.info(
            f"Rankings: {metrics['rankings_generated']} runs, "
            f"{metrics['candidates_ranked']} candidates ranked"
        )

        if metrics["job_success_rate"]:
            self.info("Job Success Rates:")
            for job_id, stats in metrics["job_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  job {job_id}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "talentrank",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
