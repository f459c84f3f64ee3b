"""Structured logging for the workspace backend.

Everything is written to stdout. ``LOG_FORMAT=json`` selects the JSON
formatter; anything else gets a plain text line for local development.

Two event loggers sit on top of the standard library loggers so that call
sites emit the same field names every time:

- ``db_logger``: connection problems, slow or failed repository operations
  and migration runs.
- ``generation_logger``: model calls, circuit transitions and the fallbacks
  taken by refinement, suggestions and enrichment.
"""

import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger

from gtm_workspace.core.config import get_settings

_DSN_PASSWORD = re.compile(r"(://[^:/@]+:)([^@]+)(@)")


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined]
    """JSON formatter that stamps level, logger name and UTC time."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def mask_connection_string(conn_str: str) -> str:
    """Replace the password in a DSN with ``****``."""
    if not conn_str:
        return ""
    return _DSN_PASSWORD.sub(r"\1****\3", conn_str)


def setup_logging() -> None:
    """Install a single stdout handler on the root logger."""
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)-8s [%(name)s] %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def _ms(duration_ms: float | None) -> float | None:
    return None if duration_ms is None else round(duration_ms, 2)


class DatabaseLogger:
    """Storage events keyed by repository operation name."""

    def __init__(self) -> None:
        self.logger = get_logger("database")

    def connection_error(self, error: Exception, connection_string: str) -> None:
        self.logger.error(
            "Database connection failed",
            extra={
                "connection_string": mask_connection_string(connection_string),
                "error_type": type(error).__name__,
                "error_message": str(error),
            },
        )

    def slow_operation(
        self, operation: str, duration_ms: float, table: str | None = None, **ids: Any
    ) -> None:
        self.logger.warning(
            f"Slow storage operation: {operation}",
            extra={"operation": operation, "table": table, "duration_ms": _ms(duration_ms), **ids},
        )

    def operation_failed(
        self, error: Exception, operation: str, table: str | None = None, **ids: Any
    ) -> None:
        """Log a failed operation; the caller re-raises and the session rolls back."""
        self.logger.error(
            f"Storage operation failed: {operation}",
            extra={
                "operation": operation,
                "table": table,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **ids,
            },
        )

    def migration_started(self, revision: str) -> None:
        self.logger.info("Running migrations", extra={"revision": revision})

    def migration_finished(self, revision: str, success: bool, duration_ms: float) -> None:
        self.logger.log(
            logging.INFO if success else logging.ERROR,
            "Migrations applied" if success else "Migrations failed",
            extra={"revision": revision, "success": success, "duration_ms": _ms(duration_ms)},
        )


db_logger = DatabaseLogger()


class GenerationLogger:
    """Model-call events and the fallbacks of the engines built on them.

    Failure kinds reported by the Claude client are ``timeout``,
    ``rate_limited``, ``unauthorized``, ``server_error``, ``client_error`` and
    ``transport``. Caller-side problems (bad credentials, bad requests, rate
    limits, timeouts) log at WARNING; provider or network faults at ERROR.
    """

    RESPONSE_PREVIEW_CHARS = 500
    _WARNING_KINDS = frozenset({"timeout", "rate_limited", "unauthorized", "client_error"})

    def __init__(self) -> None:
        self.logger = get_logger("generation")

    @classmethod
    def preview(cls, text: str) -> str:
        if len(text) <= cls.RESPONSE_PREVIEW_CHARS:
            return text
        return f"{text[: cls.RESPONSE_PREVIEW_CHARS]}... ({len(text)} chars)"

    def call_started(self, model: str, prompt_length: int) -> None:
        self.logger.debug(
            "Generation call started", extra={"model": model, "prompt_length": prompt_length}
        )

    def call_completed(
        self,
        model: str,
        duration_ms: float,
        text: str,
        *,
        stop_reason: str | None = None,
        input_tokens: int | None = None,
        output_tokens: int | None = None,
        request_id: str | None = None,
    ) -> None:
        """Log a successful call; token usage goes out at INFO when reported."""
        self.logger.debug(
            "Generation call completed",
            extra={
                "model": model,
                "duration_ms": _ms(duration_ms),
                "stop_reason": stop_reason,
                "request_id": request_id,
                "response_preview": self.preview(text),
            },
        )
        if input_tokens is not None and output_tokens is not None:
            self.logger.info(
                "Generation token usage",
                extra={
                    "model": model,
                    "input_tokens": input_tokens,
                    "output_tokens": output_tokens,
                    "total_tokens": input_tokens + output_tokens,
                },
            )

    def call_failed(
        self,
        model: str,
        kind: str,
        error: str,
        *,
        duration_ms: float | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        level = logging.WARNING if kind in self._WARNING_KINDS else logging.ERROR
        self.logger.log(
            level,
            f"Generation call failed ({kind})",
            extra={
                "model": model,
                "failure_kind": kind,
                "error": error,
                "status_code": status_code,
                "request_id": request_id,
                "retry_after_seconds": retry_after,
                "duration_ms": _ms(duration_ms),
            },
        )

    def call_skipped(self, model: str, reason: str) -> None:
        self.logger.debug("Generation call skipped", extra={"model": model, "reason": reason})

    def gateway_timeout(self, model: str, timeout_seconds: float) -> None:
        self.logger.warning(
            "Generation gave up waiting for the model",
            extra={"model": model, "timeout_seconds": timeout_seconds},
        )

    def circuit_transition(
        self,
        breaker: str,
        previous_state: str,
        new_state: str,
        failure_count: int,
        recovery_timeout: float,
    ) -> None:
        """Circuit listener hook. Opening logs at ERROR, closing at INFO."""
        level = {"open": logging.ERROR, "closed": logging.INFO}.get(new_state, logging.WARNING)
        self.logger.log(
            level,
            f"Circuit '{breaker}' {previous_state} -> {new_state}",
            extra={
                "breaker": breaker,
                "previous_state": previous_state,
                "new_state": new_state,
                "failure_count": failure_count,
                "recovery_timeout_seconds": recovery_timeout if new_state == "open" else None,
            },
        )

    def fallback(self, stage: str, subject: str, reason: str) -> None:
        """Log an engine answering without model output.

        ``stage`` is ``refine``, ``suggest``, ``enrich`` or ``icp``; ``subject``
        names the field kind, entity or variant being worked on.
        """
        self.logger.warning(
            f"{stage} fell back without model output",
            extra={"stage": stage, "subject": subject[:200], "reason": reason},
        )

    def icp_versions_complete(
        self, workspace_id: str | None, succeeded: int, total: int, duration_ms: float
    ) -> None:
        self.logger.log(
            logging.INFO if succeeded == total else logging.WARNING,
            f"ICP versions generated: {succeeded}/{total}",
            extra={
                "workspace_id": workspace_id,
                "succeeded": succeeded,
                "total": total,
                "duration_ms": _ms(duration_ms),
            },
        )


generation_logger = GenerationLogger()
