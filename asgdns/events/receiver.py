"""Lifecycle notification receiver.

Auto Scaling lifecycle hooks publish to SNS, which delivers a Lambda event
with the hook message JSON-encoded in ``Records[*].Sns.Message``. The same
message can also arrive as the ``detail`` of an EventBridge event, or be
passed directly when invoking the function by hand.
"""

import json
import logging
from typing import Any

from asgdns.exceptions import InvalidEventError
from asgdns.models import LifecycleEvent, LifecycleTransition
from asgdns.utils.security import InputValidator

logger = logging.getLogger(__name__)

TEST_NOTIFICATION = "autoscaling:TEST_NOTIFICATION"

EVENTBRIDGE_DETAIL_TYPES = {
    "EC2 Instance-launch Lifecycle Action",
    "EC2 Instance-terminate Lifecycle Action",
}

REQUIRED_KEYS = (
    "AutoScalingGroupName",
    "EC2InstanceId",
    "LifecycleHookName",
    "LifecycleActionToken",
)


def extract_messages(event: dict[str, Any]) -> list[dict[str, Any] | str]:
    """
    Unwrap the lifecycle hook messages carried by a Lambda event.

    SNS bodies are returned undecoded so that one bad record does not hide
    the others; parse_notification decodes them one at a time.

    Args:
        event: Lambda event from SNS, EventBridge or a direct invocation

    Returns:
        List of lifecycle hook messages, as dicts or raw SNS JSON bodies
    """
    if "Records" in event:
        return [record.get("Sns", {}).get("Message", "") for record in event["Records"]]

    if event.get("detail-type") in EVENTBRIDGE_DETAIL_TYPES:
        return [event.get("detail", {})]

    return [event]


def decode_message(body: str) -> dict[str, Any]:
    """
    Decode a JSON-encoded lifecycle hook message.

    Raises:
        InvalidEventError: If the body is not a JSON object
    """
    try:
        message = json.loads(body)
    except (TypeError, ValueError) as e:
        raise InvalidEventError(f"SNS message is not valid JSON: {e}")
    if not isinstance(message, dict):
        raise InvalidEventError("SNS message is not a JSON object")
    return message


def parse_notification(message: dict[str, Any] | str) -> LifecycleEvent | None:
    """
    Decode one lifecycle hook message into a LifecycleEvent.

    Test notifications, sent by Auto Scaling when a hook is created, and
    transitions the handler does not act on yield None.

    Raises:
        InvalidEventError: If the message is not valid JSON, or required
            fields are missing or invalid
    """
    if isinstance(message, str):
        message = decode_message(message)

    transition_value = message.get("LifecycleTransition") or message.get("Event")

    if transition_value == TEST_NOTIFICATION:
        logger.info("Ignoring Auto Scaling test notification")
        return None

    try:
        transition = LifecycleTransition(transition_value)
    except ValueError:
        logger.info(f"Ignoring unsupported lifecycle transition: {transition_value}")
        return None

    missing = [key for key in REQUIRED_KEYS if not message.get(key)]
    if missing:
        raise InvalidEventError(f"Lifecycle message is missing fields: {missing}")

    instance_result = InputValidator.validate_instance_id(message["EC2InstanceId"])
    if not instance_result.is_valid:
        raise InvalidEventError("; ".join(instance_result.errors))

    return LifecycleEvent(
        fleet_name=message["AutoScalingGroupName"],
        instance_id=instance_result.sanitized_value,
        transition=transition,
        hook_name=message["LifecycleHookName"],
        action_token=message["LifecycleActionToken"],
    )
