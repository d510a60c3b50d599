"""Structured logging configuration for the application."""

from datetime import UTC, datetime
import json
import logging
import sys

from app.core.config import settings


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class StandardFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging() -> None:
    """Configure application logging based on environment."""
    log_level = logging.INFO
    if settings.ENVIRONMENT == "development":
        log_level = logging.DEBUG
    elif settings.ENVIRONMENT == "production":
        log_level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.ENVIRONMENT == "production":
        formatter = JSONFormatter()
    else:
        formatter = StandardFormatter()

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Set specific log levels for noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class AuditLogger:
    """Specialized logger for submission and access events."""

    def __init__(self) -> None:
        self.logger = get_logger("audit")

    def log_result_submitted(
        self,
        result_id: str,
        election_id: str,
        polling_station: str,
        submitted_by: str,
        source: str = "form",
    ) -> None:
        """Log a new result submission (form entry or CSV line)."""
        self.logger.info(
            f"Result submitted for station: {polling_station}",
            extra={
                "extra_fields": {
                    "event_type": "result_submitted",
                    "result_id": result_id,
                    "election_id": election_id,
                    "polling_station": polling_station,
                    "submitted_by": submitted_by,
                    "source": source,
                }
            },
        )

    def log_csv_import(
        self, submitted_by: str, imported: int, errors: int, filename: str | None = None
    ) -> None:
        """Log the outcome of a CSV import."""
        message = f"CSV import by {submitted_by}: {imported} added, {errors} errors"
        extra = {
            "extra_fields": {
                "event_type": "csv_import",
                "submitted_by": submitted_by,
                "imported": imported,
                "errors": errors,
                "filename": filename,
            }
        }
        if errors:
            self.logger.warning(message, extra=extra)
        else:
            self.logger.info(message, extra=extra)

    def log_report_export(self, exported_by: str, report_count: int) -> None:
        """Log a report list export."""
        self.logger.info(
            f"Report list exported by: {exported_by}",
            extra={
                "extra_fields": {
                    "event_type": "report_export",
                    "exported_by": exported_by,
                    "report_count": report_count,
                }
            },
        )

    def log_unauthorized_access(
        self,
        resource: str,
        user_id: str | None = None,
        role: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Log unauthorized access attempt."""
        self.logger.warning(
            f"Unauthorized access attempt to: {resource}",
            extra={
                "extra_fields": {
                    "event_type": "unauthorized_access",
                    "resource": resource,
                    "user_id": user_id,
                    "role": role,
                    "reason": reason,
                }
            },
        )


# Global audit logger instance
audit_logger = AuditLogger()
