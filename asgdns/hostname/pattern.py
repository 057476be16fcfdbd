"""Hostname pattern resolution from Auto Scaling group tags."""

import logging
from typing import Any

from asgdns.exceptions import (
    AmbiguousSeparatorError,
    EmptyTemplateError,
    EmptyZoneIdError,
    MalformedPatternError,
    MissingPatternTagError,
    MissingSeparatorError,
    RepeatedPlaceholderError,
)
from asgdns.models import HostnamePattern
from asgdns.utils.aws_client import Deadline, RetryStrategy
from asgdns.utils.logging import log_debug_api_call
from asgdns.utils.security import InputValidator

logger = logging.getLogger(__name__)

PATTERN_SEPARATOR = "@"


def parse_hostname_pattern(value: str, placeholder: str = "#instanceid") -> HostnamePattern:
    """
    Parse a `<template>@<zoneId>` tag value.

    Each class of malformed input raises its own MalformedPatternError
    subclass. A template without the placeholder is accepted and renders
    the same hostname for every instance.

    Args:
        value: Raw tag value
        placeholder: Instance-id placeholder token

    Returns:
        Parsed HostnamePattern

    Raises:
        MalformedPatternError: If the value cannot be parsed
    """
    value = (value or "").strip()
    separators = value.count(PATTERN_SEPARATOR)

    if separators == 0:
        raise MissingSeparatorError(f"Hostname pattern '{value}' has no '@' separator")
    if separators > 1:
        raise AmbiguousSeparatorError(
            f"Hostname pattern '{value}' has {separators} '@' separators, expected one"
        )

    template, zone_id = value.rsplit(PATTERN_SEPARATOR, 1)
    template = template.strip()
    zone_id = zone_id.strip()

    if not template:
        raise EmptyTemplateError(f"Hostname pattern '{value}' has an empty template")
    if not zone_id:
        raise EmptyZoneIdError(f"Hostname pattern '{value}' has an empty zone id")

    occurrences = template.count(placeholder)
    if occurrences > 1:
        raise RepeatedPlaceholderError(
            f"Placeholder '{placeholder}' appears {occurrences} times in '{template}'"
        )
    if occurrences == 0:
        logger.warning(
            f"Template '{template}' has no '{placeholder}' placeholder; "
            f"every instance will share one hostname"
        )

    zone_result = InputValidator.validate_hosted_zone_id(zone_id)
    if not zone_result.is_valid:
        raise MalformedPatternError("; ".join(zone_result.errors))

    return HostnamePattern(template=template, zone_id=zone_result.sanitized_value)


class PatternResolver:
    """Fetches and parses the hostname pattern declared on an Auto Scaling group."""

    def __init__(
        self,
        autoscaling_client: Any,
        tag_key: str = "asg:hostname_pattern",
        placeholder: str = "#instanceid",
        retry_strategy: RetryStrategy | None = None,
    ):
        """
        Initialize pattern resolver.

        Args:
            autoscaling_client: Boto3 Auto Scaling client
            tag_key: Group tag key holding the pattern
            placeholder: Instance-id placeholder token
            retry_strategy: Backoff used on throttling
        """
        self.autoscaling = autoscaling_client
        self.tag_key = tag_key
        self.placeholder = placeholder
        self.retry_strategy = retry_strategy or RetryStrategy()

    def get_pattern_tag(self, fleet_name: str, deadline: Deadline | None = None) -> str | None:
        """
        Fetch the raw pattern tag value for a group.

        Returns:
            Tag value, or None if the group does not carry the tag
        """
        filters = [
            {"Name": "auto-scaling-group", "Values": [fleet_name]},
            {"Name": "key", "Values": [self.tag_key]},
        ]
        log_debug_api_call("describe_tags", "autoscaling", {"Filters": filters})
        response = self.retry_strategy.execute_with_retry(
            self.autoscaling.describe_tags, Filters=filters, deadline=deadline
        )

        for tag in response.get("Tags", []):
            if tag.get("ResourceId") == fleet_name and tag.get("Key") == self.tag_key:
                return tag.get("Value", "")
        return None

    def resolve(self, fleet_name: str, deadline: Deadline | None = None) -> HostnamePattern:
        """
        Resolve the hostname pattern for a group.

        Raises:
            MissingPatternTagError: If the group has not opted in
            MalformedPatternError: If the tag value cannot be parsed
        """
        value = self.get_pattern_tag(fleet_name, deadline=deadline)
        if value is None:
            raise MissingPatternTagError(
                f"Auto Scaling group {fleet_name} has no '{self.tag_key}' tag"
            )

        pattern = parse_hostname_pattern(value, self.placeholder)
        logger.debug(
            f"Resolved pattern for {fleet_name}: template={pattern.template}, "
            f"zone={pattern.zone_id}"
        )
        return pattern
