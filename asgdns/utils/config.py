"""Configuration management for the ASG DNS handler.

Configuration is read from the Lambda function's environment variables.

Key configuration options:
- HOSTNAME_TAG_KEY: Auto Scaling group tag holding the `<template>@<zoneId>` pattern
- USE_PUBLIC_IP: Point records at the public instead of the private address
- INSTANCE_ID_PLACEHOLDER: Token replaced by the instance id in the template
- AWS_CALL_TIMEOUT_SECONDS / HEARTBEAT_BUDGET_SECONDS: Deadline budget
- DNS_RETRY_*: Backoff policy for Route 53 throttling
- TAG_FAILURE_ABANDONS: Escalate display-name tag failures to ABANDON
- LOG_LEVEL: Configurable log level
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from asgdns.exceptions import ConfigurationError
from asgdns.models import AddressKind
from asgdns.utils.security import InputValidator

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

TRUE_VALUES = ("true", "1", "yes")

# Route 53 accepts TTLs up to two days
MAX_RECORD_TTL = 172800

_config_logger = logging.getLogger(__name__)


@dataclass
class HandlerConfig:
    """Configuration for the lifecycle DNS handler.

    Attributes:
        hostname_tag_key: Group tag key holding the hostname pattern.
        use_public_ip: When True, records point at the instance public address.
        instance_id_placeholder: Token substituted with the instance id.
        record_ttl: TTL in seconds for created address records.
        call_timeout_seconds: Connect and read timeout for every AWS call.
        heartbeat_budget_seconds: Time budget per event, kept below the hook
            heartbeat timeout.
        dns_retry_max_attempts: Retries on Route 53 throttling.
        dns_retry_base_delay: Backoff base delay in seconds.
        dns_retry_max_delay: Backoff delay cap in seconds.
        set_instance_name: When True, tag launched instances with their short name.
        name_tag_key: Tag key used for the instance display name.
        tag_failure_abandons: When True, a failed name tag makes the launch ABANDON.
        region: AWS region for operations.
        log_level: Log level for output.
    """

    hostname_tag_key: str = "asg:hostname_pattern"
    use_public_ip: bool = False
    instance_id_placeholder: str = "#instanceid"
    record_ttl: int = 300
    call_timeout_seconds: float = 5.0
    heartbeat_budget_seconds: float = 60.0
    dns_retry_max_attempts: int = 3
    dns_retry_base_delay: float = 0.5
    dns_retry_max_delay: float = 5.0
    set_instance_name: bool = True
    name_tag_key: str = "Name"
    tag_failure_abandons: bool = False
    region: str = "us-east-1"
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls, validate: bool = True) -> "HandlerConfig":
        """Create configuration from environment variables.

        Args:
            validate: If True, validates the configuration and raises
                ConfigurationError if invalid.

        Returns:
            HandlerConfig instance populated from environment variables.

        Raises:
            ConfigurationError: If validation is enabled and configuration is invalid.
        """
        config = cls()

        config.hostname_tag_key = os.environ.get("HOSTNAME_TAG_KEY", config.hostname_tag_key)
        config.instance_id_placeholder = os.environ.get(
            "INSTANCE_ID_PLACEHOLDER", config.instance_id_placeholder
        )
        config.name_tag_key = os.environ.get("NAME_TAG_KEY", config.name_tag_key)

        config.use_public_ip = _parse_bool("USE_PUBLIC_IP", config.use_public_ip)
        config.set_instance_name = _parse_bool("SET_INSTANCE_NAME", config.set_instance_name)
        config.tag_failure_abandons = _parse_bool(
            "TAG_FAILURE_ABANDONS", config.tag_failure_abandons
        )

        config.record_ttl = _parse_number("RECORD_TTL", config.record_ttl, int)
        config.call_timeout_seconds = _parse_number(
            "AWS_CALL_TIMEOUT_SECONDS", config.call_timeout_seconds, float
        )
        config.heartbeat_budget_seconds = _parse_number(
            "HEARTBEAT_BUDGET_SECONDS", config.heartbeat_budget_seconds, float
        )
        config.dns_retry_max_attempts = _parse_number(
            "DNS_RETRY_MAX_ATTEMPTS", config.dns_retry_max_attempts, int
        )
        config.dns_retry_base_delay = _parse_number(
            "DNS_RETRY_BASE_DELAY", config.dns_retry_base_delay, float
        )
        config.dns_retry_max_delay = _parse_number(
            "DNS_RETRY_MAX_DELAY", config.dns_retry_max_delay, float
        )

        config.region = os.environ.get("AWS_REGION", "us-east-1")

        log_level_value = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        if log_level_value in VALID_LOG_LEVELS:
            config.log_level = log_level_value
        else:
            _config_logger.warning(f"Invalid LOG_LEVEL '{log_level_value}', defaulting to INFO")
            config.log_level = "INFO"

        if validate:
            errors = config.validate()
            if errors:
                raise ConfigurationError(
                    f"Configuration validation failed: {errors}", errors=errors
                )

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages. Empty list if configuration is valid.
        """
        errors = []

        result = InputValidator.validate_tag_key(self.hostname_tag_key)
        if not result.is_valid:
            errors.extend(f"HOSTNAME_TAG_KEY: {e}" for e in result.errors)

        if not self.instance_id_placeholder:
            errors.append("INSTANCE_ID_PLACEHOLDER cannot be empty")
        elif "@" in self.instance_id_placeholder:
            errors.append("INSTANCE_ID_PLACEHOLDER must not contain '@'")

        if self.set_instance_name:
            result = InputValidator.validate_tag_key(self.name_tag_key)
            if not result.is_valid:
                errors.extend(f"NAME_TAG_KEY: {e}" for e in result.errors)

        if not 1 <= self.record_ttl <= MAX_RECORD_TTL:
            errors.append(f"RECORD_TTL must be between 1 and {MAX_RECORD_TTL}")

        if self.call_timeout_seconds <= 0:
            errors.append("AWS_CALL_TIMEOUT_SECONDS must be positive")

        if self.heartbeat_budget_seconds <= 0:
            errors.append("HEARTBEAT_BUDGET_SECONDS must be positive")
        elif self.call_timeout_seconds >= self.heartbeat_budget_seconds:
            errors.append(
                "AWS_CALL_TIMEOUT_SECONDS must be shorter than HEARTBEAT_BUDGET_SECONDS"
            )

        if self.dns_retry_max_attempts < 0:
            errors.append("DNS_RETRY_MAX_ATTEMPTS cannot be negative")

        if self.dns_retry_base_delay < 0 or self.dns_retry_max_delay < 0:
            errors.append("DNS retry delays cannot be negative")

        return errors

    @property
    def address_kind(self) -> AddressKind:
        """Address kind the records should point at."""
        return AddressKind.PUBLIC if self.use_public_ip else AddressKind.PRIVATE

    def get_numeric_log_level(self) -> int:
        """Get the numeric log level for use with logging module."""
        return getattr(logging, self.log_level, logging.INFO)


def _parse_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower().strip() in TRUE_VALUES


def _parse_number(name, default, cast):
    """Parse a numeric environment variable, falling back to the default on bad input."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError:
        _config_logger.warning(f"Invalid {name} '{value}', defaulting to {default}")
        return default


def configure_logging(config: Optional["HandlerConfig"] = None) -> logging.Logger:
    """Configure logging based on LOG_LEVEL environment variable or config.

    Args:
        config: Optional HandlerConfig instance. If not provided, reads from environment.

    Returns:
        Configured logger instance for the handler package.
    """
    if config is None:
        log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        if log_level_str not in VALID_LOG_LEVELS:
            logging.warning(f"Invalid LOG_LEVEL '{log_level_str}', defaulting to INFO")
            log_level_str = "INFO"
        log_level = getattr(logging, log_level_str, logging.INFO)
    else:
        log_level = config.get_numeric_log_level()

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )

    handler_logger = logging.getLogger("asgdns")
    handler_logger.setLevel(log_level)

    return handler_logger
