"""Utility modules for AWS client management, configuration and logging."""

from asgdns.utils.aws_client import AWSClientManager, Deadline, RetryStrategy
from asgdns.utils.config import HandlerConfig, configure_logging
from asgdns.utils.logging import ActionType, LifecycleLogger, LogEntry, LogLevel
from asgdns.utils.security import InputValidator, LogSanitizer, ValidationResult

__all__ = [
    "AWSClientManager",
    "Deadline",
    "RetryStrategy",
    "HandlerConfig",
    "configure_logging",
    "ActionType",
    "LifecycleLogger",
    "LogEntry",
    "LogLevel",
    "InputValidator",
    "LogSanitizer",
    "ValidationResult",
]
