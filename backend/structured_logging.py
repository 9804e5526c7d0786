"""
Structured Logging Module

Provides JSON-formatted logging for the future self generator.

Features:
- JSON log formatting for machine-readable logs
- Session context tracking (session ID, slot index, years offset)
- stdout and rotating NDJSON file output
- Sensitive data masking
- Generation attempt and slot transition helpers

Usage:
    from structured_logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(session_id="abc123", slot_index=2):
        logger.info("Dispatching generation", extra={"years_offset": 15})

Configuration (environment variables):
    LOG_FORMAT: "json" or "text" (default: "json")
    LOG_OUTPUT: "stdout", "file", "all" (default: "stdout")
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: "INFO")
    LOG_FILE: Path of the NDJSON log file for file output
"""

import json
import logging
import sys
import os
import threading
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar
from pathlib import Path
import socket
import uuid

# Context variables for session tracking (copied into each asyncio task)
_log_context: ContextVar[Dict[str, Any]] = ContextVar('log_context', default={})


# =============================================================================
# LOG CONTEXT MANAGEMENT
# =============================================================================

class LogContext:
    """
    Context manager for adding contextual information to logs.

    Usage:
        with LogContext(session_id="abc", slot_index=3):
            logger.info("Processing")  # Will include session_id and slot_index
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        current = _log_context.get().copy()
        current.update(self.context)
        self._token = _log_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token:
            _log_context.reset(self._token)
        return False


def get_context() -> Dict[str, Any]:
    """Get current logging context."""
    return _log_context.get().copy()


def clear_context():
    """Clear the current logging context."""
    _log_context.set({})


# =============================================================================
# JSON LOG FORMATTER
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    Formats log records as one JSON object per line.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:45.123Z",
        "level": "INFO",
        "logger": "future_self_generator",
        "message": "Slot transitioned",
        "service": "future-self",
        "environment": "development",
        "host": "laptop-01",
        "session_id": "abc123",
        "extra": {...}
    }
    """

    # Fields to always include at the top level
    STANDARD_FIELDS = {
        'timestamp', 'level', 'logger', 'message', 'service',
        'environment', 'host', 'session_id', 'slot_index'
    }

    # Sensitive fields to mask
    SENSITIVE_FIELDS = {
        'password', 'token', 'secret', 'api_key', 'authorization', 'credential'
    }

    # Attributes every LogRecord carries; anything else came in through extra=
    _RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

    def __init__(
        self,
        service_name: str = "future-self",
        environment: str = None,
        include_extra: bool = True,
        mask_sensitive: bool = True
    ):
        super().__init__()
        self.service_name = service_name
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.include_extra = include_extra
        self.mask_sensitive = mask_sensitive
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        context = get_context()

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
            "host": self.hostname,
        }

        for key in ['session_id', 'slot_index']:
            if key in context:
                log_entry[key] = context[key]

        # Add source location for errors
        if record.levelno >= logging.ERROR:
            log_entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName
            }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stacktrace": self._format_exception(record.exc_info)
            }

        if self.include_extra:
            extra = {}
            for key, value in record.__dict__.items():
                if key in self._RECORD_ATTRS or key.startswith('_'):
                    continue
                if key in self.STANDARD_FIELDS:
                    continue
                if self.mask_sensitive and self._is_sensitive(key):
                    extra[key] = "***MASKED***"
                else:
                    extra[key] = self._serialize_value(value)

            # Add remaining context as extra
            for key, value in context.items():
                if key not in log_entry and key not in extra:
                    extra[key] = self._serialize_value(value)

            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _format_exception(self, exc_info) -> Optional[str]:
        if exc_info:
            return ''.join(traceback.format_exception(*exc_info))
        return None

    def _is_sensitive(self, key: str) -> bool:
        """Check if a field name indicates sensitive data."""
        key_lower = key.lower()
        return any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS)

    def _serialize_value(self, value: Any) -> Any:
        """Serialize a value for JSON output."""
        if isinstance(value, (str, int, float, bool, type(None))):
            return value
        elif isinstance(value, datetime):
            return value.isoformat()
        elif isinstance(value, bytes):
            return f"<{len(value)} bytes>"
        elif isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        elif isinstance(value, dict):
            return {k: self._serialize_value(v) for k, v in value.items()}
        else:
            return str(value)


# =============================================================================
# NDJSON FILE HANDLER
# =============================================================================

class RotatingJSONFileHandler(logging.Handler):
    """
    File handler that writes one JSON object per line.

    Rotates by size, keeping backup_count numbered backups.
    """

    def __init__(
        self,
        filename: str,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        encoding: str = 'utf-8'
    ):
        super().__init__()
        self.filename = Path(filename)
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.encoding = encoding
        self._lock = threading.Lock()

        self.filename.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: logging.LogRecord):
        """Write log record to file."""
        try:
            msg = self.format(record)

            with self._lock:
                if self.filename.exists() and self.filename.stat().st_size >= self.max_bytes:
                    self._rotate()

                with open(self.filename, 'a', encoding=self.encoding) as f:
                    f.write(msg + '\n')

        except Exception:
            self.handleError(record)

    def _rotate(self):
        """Rotate log files."""
        oldest = Path(f"{self.filename}.{self.backup_count}")
        if oldest.exists():
            oldest.unlink()

        for i in range(self.backup_count - 1, 0, -1):
            src = Path(f"{self.filename}.{i}")
            dst = Path(f"{self.filename}.{i + 1}")
            if src.exists():
                src.rename(dst)

        if self.filename.exists():
            self.filename.rename(Path(f"{self.filename}.1"))


# =============================================================================
# LOGGER FACTORY
# =============================================================================

_loggers: Dict[str, logging.Logger] = {}
_configured = False


def configure_logging(
    level: str = None,
    format: str = None,
    output: str = None,
    service_name: str = "future-self",
    log_file: str = None
):
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format ("json" or "text")
        output: Output destination ("stdout", "file", "all")
        service_name: Service name for log entries
        log_file: Path to log file (for file output)
    """
    global _configured

    level = level or os.getenv("LOG_LEVEL", "INFO")
    format = format or os.getenv("LOG_FORMAT", "json")
    output = output or os.getenv("LOG_OUTPUT", "stdout")
    log_file = log_file or os.getenv("LOG_FILE", "logs/future_self.json.log")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if format.lower() == "json":
        formatter = JSONFormatter(service_name=service_name)
    else:
        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    outputs = [out.strip() for out in output.lower().split(",")]

    for out in outputs:
        if out in ("stdout", "all"):
            stdout_handler = logging.StreamHandler(sys.stdout)
            stdout_handler.setFormatter(formatter)
            root_logger.addHandler(stdout_handler)

        if out in ("file", "all"):
            if format.lower() == "json":
                file_handler = RotatingJSONFileHandler(log_file)
            else:
                Path(log_file).parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    _configured = True

    root_logger.info(
        "Logging configured",
        extra={
            "log_level": level,
            "log_format": format,
            "log_output": output,
            "service": service_name
        }
    )


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance with structured logging support.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    global _configured

    # Auto-configure on first use if not already configured
    if not _configured:
        configure_logging()

    name = name or "future_self"

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)

    return _loggers[name]


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def log_generation_attempt(
    attempt: int,
    max_attempts: int,
    duration_ms: float,
    success: bool,
    error: str = None,
    **extra
):
    """Log one call to the image generation service."""
    logger = get_logger("generation")

    log_data = {
        "attempt": attempt,
        "max_attempts": max_attempts,
        "duration_ms": round(duration_ms, 2),
        "success": success,
        **extra
    }

    if success:
        logger.info("Generation attempt succeeded", extra=log_data)
    elif attempt >= max_attempts:
        log_data["error"] = error
        logger.error("Generation attempt failed, no attempts left", extra=log_data)
    else:
        log_data["error"] = error
        logger.warning("Generation attempt failed, will retry", extra=log_data)


def log_slot_transition(
    slot_index: int,
    years_offset: int,
    from_status: str,
    to_status: str,
    **extra
):
    """Log a slot state change so presentation-side observers can trace outcomes."""
    logger = get_logger("slots")

    log_data = {
        "slot": slot_index,
        "years_offset": years_offset,
        "from_status": from_status,
        "to_status": to_status,
        **extra
    }

    if to_status == "failed":
        logger.warning("Slot transitioned", extra=log_data)
    else:
        logger.info("Slot transitioned", extra=log_data)


# =============================================================================
# SESSION ID GENERATION
# =============================================================================

def generate_session_id() -> str:
    """Generate a short session ID for correlating one user's generations."""
    return str(uuid.uuid4())[:12]
