"""Input validation and log sanitization for the ASG DNS handler.

Values arriving in notifications and tags are validated before they reach
EC2 or Route 53, and everything written to CloudWatch passes through the
sanitizer so lifecycle action tokens and credentials never end up in logs.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

AWS_RESOURCE_PATTERNS = {
    "instance_id": re.compile(r"^i-[a-f0-9]{1,17}$"),
    "hosted_zone_id": re.compile(r"^Z[A-Z0-9]{1,32}$"),
    "hostname_label": re.compile(r"^[A-Za-z0-9_]([A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?$"),
}

MAX_LENGTHS = {
    "tag_key": 128,
    "tag_value": 256,
    "hostname": 253,
}

TAG_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9\s_.:/=+\-@]+$")

HOSTED_ZONE_PREFIX = "/hostedzone/"


@dataclass
class ValidationResult:
    """Result of input validation."""

    is_valid: bool
    errors: List[str]
    sanitized_value: Optional[Any] = None

    @classmethod
    def valid(cls, sanitized_value: Any = None) -> "ValidationResult":
        """Create a valid result."""
        return cls(is_valid=True, errors=[], sanitized_value=sanitized_value)

    @classmethod
    def invalid(cls, errors: List[str]) -> "ValidationResult":
        """Create an invalid result."""
        return cls(is_valid=False, errors=errors)


class InputValidator:
    """Validates identifiers taken from notifications and tags."""

    @staticmethod
    def validate_instance_id(instance_id: str) -> ValidationResult:
        """
        Validate an EC2 instance ID.

        Args:
            instance_id: The instance ID to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        if not instance_id:
            return ValidationResult.invalid(["Instance ID cannot be empty"])

        instance_id = instance_id.strip()
        if not AWS_RESOURCE_PATTERNS["instance_id"].match(instance_id):
            return ValidationResult.invalid([f"Invalid instance ID format: {instance_id}"])

        return ValidationResult.valid(instance_id)

    @staticmethod
    def validate_hosted_zone_id(zone_id: str) -> ValidationResult:
        """
        Validate a Route 53 hosted zone ID.

        Accepts both the bare ID and the ``/hostedzone/`` prefixed form the
        Route 53 API returns; the sanitized value is the bare ID.
        """
        if not zone_id:
            return ValidationResult.invalid(["Hosted zone ID cannot be empty"])

        zone_id = zone_id.strip()
        if zone_id.startswith(HOSTED_ZONE_PREFIX):
            zone_id = zone_id[len(HOSTED_ZONE_PREFIX):]

        if not AWS_RESOURCE_PATTERNS["hosted_zone_id"].match(zone_id):
            return ValidationResult.invalid([f"Invalid hosted zone ID format: {zone_id}"])

        return ValidationResult.valid(zone_id)

    @staticmethod
    def validate_hostname(hostname: str) -> ValidationResult:
        """
        Validate a fully qualified hostname.

        Each label must be 1-63 characters of letters, digits, hyphens or
        underscores, not starting or ending with a hyphen. Wildcard labels
        are rejected. A single trailing dot is accepted and removed.
        """
        if not hostname:
            return ValidationResult.invalid(["Hostname cannot be empty"])

        name = hostname[:-1] if hostname.endswith(".") else hostname
        errors = []

        if len(name) > MAX_LENGTHS["hostname"]:
            errors.append(f"Hostname exceeds maximum length of {MAX_LENGTHS['hostname']}")

        for label in name.split("."):
            if not AWS_RESOURCE_PATTERNS["hostname_label"].match(label):
                errors.append(f"Invalid hostname label: '{label}'")

        if errors:
            return ValidationResult.invalid(errors)

        return ValidationResult.valid(name)

    @staticmethod
    def validate_tag_key(key: str) -> ValidationResult:
        """Validate an AWS tag key."""
        if not key:
            return ValidationResult.invalid(["Tag key cannot be empty"])

        if len(key) > MAX_LENGTHS["tag_key"]:
            return ValidationResult.invalid(
                [f"Tag key exceeds maximum length of {MAX_LENGTHS['tag_key']}"]
            )

        if key.lower().startswith("aws:"):
            return ValidationResult.invalid(["Tag key cannot start with 'aws:' (reserved)"])

        if not TAG_KEY_PATTERN.match(key):
            return ValidationResult.invalid([f"Tag key contains invalid characters: {key}"])

        return ValidationResult.valid(key)


class LogSanitizer:
    """Sanitizes log output to prevent sensitive data exposure."""

    SENSITIVE_PATTERNS = [
        (re.compile(r"AKIA[0-9A-Z]{16}"), "[REDACTED_ACCESS_KEY]"),
        (
            re.compile(
                r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
            ),
            "[REDACTED_TOKEN]",
        ),
        (re.compile(r"(?i)password\s*[=:]\s*\S+"), "password=[REDACTED]"),
        (re.compile(r"(?i)secret\s*[=:]\s*\S+"), "secret=[REDACTED]"),
        (re.compile(r"(?i)token\s*[=:]\s*\S+"), "token=[REDACTED]"),
        # Standalone 40-character secret keys; hostname labels sit next to '.' or '-'
        (
            re.compile(r"(?<![A-Za-z0-9+/.\-])[A-Za-z0-9+/]{40}(?![A-Za-z0-9+/.\-])"),
            "[REDACTED_SECRET]",
        ),
    ]

    @classmethod
    def sanitize(cls, message: str) -> str:
        """
        Sanitize a log message to remove sensitive data.

        Args:
            message: The message to sanitize

        Returns:
            Sanitized message
        """
        sanitized = message
        for pattern, replacement in cls.SENSITIVE_PATTERNS:
            sanitized = pattern.sub(replacement, sanitized)
        return sanitized

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize a dictionary for logging."""
        sanitized: Dict[str, Any] = {}
        sensitive_keys = {"password", "secret", "token", "credential", "auth"}

        for key, value in data.items():
            key_lower = key.lower()
            if any(s in key_lower for s in sensitive_keys):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, str):
                sanitized[key] = cls.sanitize(value)
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value)
            elif isinstance(value, list):
                sanitized[key] = [cls.sanitize(v) if isinstance(v, str) else v for v in value]
            else:
                sanitized[key] = value

        return sanitized
