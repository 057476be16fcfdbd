"""CloudWatch logging for lifecycle event handling.

Each lifecycle event is logged as a sequence of structured entries (receive,
resolve, render, upsert/delete, tag, complete) so operators can follow an
instance through the handler in CloudWatch. All output is sanitized so
lifecycle action tokens and credentials are never written to the logs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from asgdns.utils.security import LogSanitizer

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Log levels for handler operations."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ActionType(Enum):
    """Steps of lifecycle event handling that can be logged."""

    RECEIVE = "RECEIVE"
    RESOLVE = "RESOLVE"
    RENDER = "RENDER"
    UPSERT = "UPSERT"
    DELETE = "DELETE"
    TAG = "TAG"
    COMPLETE = "COMPLETE"
    SKIP = "SKIP"
    ERROR = "ERROR"


@dataclass
class LogEntry:
    """Structured log entry for CloudWatch."""

    timestamp: datetime
    level: LogLevel
    action: ActionType
    instance_id: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    error_info: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary for structured logging."""
        entry = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "action": self.action.value,
            "instance_id": self.instance_id,
            "message": self.message,
        }
        if self.details:
            entry["details"] = self.details
        if self.error_info:
            entry["error"] = self.error_info
        return entry


class LifecycleLogger:
    """Structured logging for one lifecycle event.

    Entries are prefixed with the group name and transition so concurrent
    invocations can be told apart in a shared log group.
    """

    def __init__(self, fleet_name: str = "", transition: str = ""):
        self.fleet_name = fleet_name
        self.transition = transition
        self._log_entries: List[LogEntry] = []

    def _create_entry(
        self,
        level: LogLevel,
        action: ActionType,
        instance_id: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_info: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        """Create a sanitized log entry."""
        return LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            action=action,
            instance_id=LogSanitizer.sanitize(instance_id),
            message=LogSanitizer.sanitize(message),
            details=LogSanitizer.sanitize_dict(details) if details else {},
            error_info=LogSanitizer.sanitize_dict(error_info) if error_info else None,
        )

    def _log(self, entry: LogEntry) -> None:
        """Log entry to CloudWatch and store it for the invocation summary."""
        self._log_entries.append(entry)

        log_message = (
            f"[{entry.action.value}] {self.fleet_name} {self.transition} "
            f"{entry.instance_id}: {entry.message}"
        )

        if entry.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in entry.details.items())
            log_message += f" ({detail_str})"

        if entry.level == LogLevel.DEBUG:
            logger.debug(log_message)
        elif entry.level == LogLevel.INFO:
            logger.info(log_message)
        elif entry.level == LogLevel.WARNING:
            logger.warning(log_message)
        else:
            if entry.error_info:
                log_message += f" - Error: {entry.error_info}"
            logger.error(log_message)

    def log_step(
        self,
        action: ActionType,
        instance_id: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a successful handling step."""
        self._log(self._create_entry(LogLevel.INFO, action, instance_id, message, details))

    def log_debug(
        self,
        action: ActionType,
        instance_id: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a step at DEBUG level."""
        self._log(self._create_entry(LogLevel.DEBUG, action, instance_id, message, details))

    def log_skipped(self, instance_id: str, reason: str) -> None:
        """Log an event the handler deliberately does not act on."""
        self._log(
            self._create_entry(
                LogLevel.INFO, ActionType.SKIP, instance_id, f"Skipped: {reason}"
            )
        )

    def log_warning(
        self,
        action: ActionType,
        instance_id: str,
        error: Exception,
    ) -> None:
        """Log a non-fatal error that does not change the verdict."""
        entry = self._create_entry(
            level=LogLevel.WARNING,
            action=action,
            instance_id=instance_id,
            message=f"{type(error).__name__}: {error}",
        )
        self._log(entry)

    def log_error(
        self,
        instance_id: str,
        error: Exception,
        action: Optional[ActionType] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log error with detailed information."""
        error_info = {
            "error_type": type(error).__name__,
            "error_message": LogSanitizer.sanitize(str(error)),
        }

        if hasattr(error, "response"):
            response = getattr(error, "response", {})
            if isinstance(response, dict):
                error_info["aws_error_code"] = response.get("Error", {}).get("Code", "Unknown")

        entry = self._create_entry(
            level=LogLevel.ERROR,
            action=action or ActionType.ERROR,
            instance_id=instance_id,
            message=f"Error occurred: {type(error).__name__}",
            details=details,
            error_info=error_info,
        )
        self._log(entry)

    def get_log_entries(self) -> List[LogEntry]:
        """Get all log entries for reporting."""
        return self._log_entries.copy()


def log_debug_api_call(
    api_name: str,
    service: str,
    parameters: Optional[Dict[str, Any]] = None,
) -> None:
    """Log AWS API call at DEBUG level.

    Args:
        api_name: Name of the API being called
        service: AWS service name
        parameters: Optional parameters (will be sanitized)
    """
    sanitized_params = LogSanitizer.sanitize_dict(parameters) if parameters else {}

    message = f"API call: {service}.{api_name}"
    if sanitized_params:
        params_str = ", ".join(f"{k}={v}" for k, v in sanitized_params.items())
        message += f" ({params_str})"

    logger.debug(message)
