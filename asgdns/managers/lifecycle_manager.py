"""Completion of Auto Scaling lifecycle actions."""

import logging
from typing import Any, Optional

from botocore.exceptions import ClientError

from asgdns.exceptions import LifecycleCompletionError, LifecycleTokenExpiredError
from asgdns.models import LifecycleEvent, LifecycleVerdict
from asgdns.utils.aws_client import Deadline, RetryStrategy, error_code, error_message
from asgdns.utils.logging import log_debug_api_call

logger = logging.getLogger(__name__)

NO_ACTIVE_ACTION_MESSAGE = "no active lifecycle action"


class LifecycleManager:
    """Reports the handler's verdict back to the lifecycle hook."""

    def __init__(self, autoscaling_client: Any, retry_strategy: Optional[RetryStrategy] = None):
        self.autoscaling = autoscaling_client
        self.retry_strategy = retry_strategy or RetryStrategy()

    def complete(
        self,
        event: LifecycleEvent,
        verdict: LifecycleVerdict,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """
        Complete the pending lifecycle action with the given verdict.

        Args:
            event: The event whose hook is waiting
            verdict: CONTINUE or ABANDON

        Raises:
            LifecycleTokenExpiredError: If the action is no longer pending,
                because the heartbeat expired or an earlier delivery of the
                same event already completed it
            LifecycleCompletionError: For any other failure
        """
        params = {
            "AutoScalingGroupName": event.fleet_name,
            "LifecycleHookName": event.hook_name,
            "LifecycleActionToken": event.action_token,
            "InstanceId": event.instance_id,
            "LifecycleActionResult": verdict.value,
        }
        log_debug_api_call("complete_lifecycle_action", "autoscaling", params)
        try:
            self.retry_strategy.execute_with_retry(
                self.autoscaling.complete_lifecycle_action, deadline=deadline, **params
            )
        except ClientError as e:
            code = error_code(e)
            message = error_message(e)
            if code == "ValidationError" and NO_ACTIVE_ACTION_MESSAGE in message.lower():
                raise LifecycleTokenExpiredError(
                    f"Lifecycle action for {event.instance_id} is no longer pending"
                )
            raise LifecycleCompletionError(
                f"Could not complete lifecycle action for {event.instance_id}: {code} {message}"
            )

        logger.info(
            f"Completed lifecycle action {event.hook_name} for {event.instance_id} "
            f"with {verdict.value}"
        )
