"""Lambda handler for the ASG DNS handler.

This module implements the Lambda entry point and the orchestrator that
sequences the components for each lifecycle event:

    notification -> pattern -> hostname ->
        launch:    address -> upsert record -> name tag
        terminate: look up record -> delete record
    -> complete lifecycle action

Key Design Principles:
- Explicit collaborators: AWS clients are built once by AWSClientManager and
  injected into the managers, so tests substitute fakes.
- One verdict per event: every failure on either path goes through the same
  failure-to-verdict mapping and the verdict is reported exactly once.
- Repeat-safe steps: pattern resolution is read-only, record upsert/delete and
  tagging are idempotent, and re-completing an already completed action is
  tolerated, so re-delivered notifications are harmless.
- Deadline budget: no DNS mutation is attempted once the event's budget can
  no longer cover a call; the handler abandons instead.
"""

import json
import logging
from typing import Any

from asgdns.events.receiver import extract_messages, parse_notification
from asgdns.exceptions import (
    DeadlineExceededError,
    HandlerError,
    InvalidEventError,
    LifecycleTokenExpiredError,
    MissingPatternTagError,
    TagWriteFailedError,
)
from asgdns.hostname.pattern import PatternResolver
from asgdns.hostname.renderer import render_hostname
from asgdns.managers.ec2_manager import EC2Manager
from asgdns.managers.lifecycle_manager import LifecycleManager
from asgdns.managers.route53_manager import Route53Manager
from asgdns.models import (
    EventOutcome,
    LifecycleEvent,
    LifecycleTransition,
    LifecycleVerdict,
    ResolvedHostname,
)
from asgdns.utils.aws_client import AWSClientManager, Deadline, RetryStrategy
from asgdns.utils.config import HandlerConfig, configure_logging
from asgdns.utils.logging import ActionType, LifecycleLogger
from asgdns.utils.security import LogSanitizer

# Configure logging - will be reconfigured with proper level in handler
logger = logging.getLogger()
logger.setLevel(logging.INFO)

TRANSITION_LABELS = {
    LifecycleTransition.LAUNCHING: "launch",
    LifecycleTransition.TERMINATING: "terminate",
}


class LifecycleOrchestrator:
    """Sequences the handling of one lifecycle event and reports its verdict."""

    def __init__(
        self,
        config: HandlerConfig,
        pattern_resolver: PatternResolver,
        ec2_manager: EC2Manager,
        route53_manager: Route53Manager,
        lifecycle_manager: LifecycleManager,
    ):
        self.config = config
        self.pattern_resolver = pattern_resolver
        self.ec2_manager = ec2_manager
        self.route53_manager = route53_manager
        self.lifecycle_manager = lifecycle_manager

    @classmethod
    def from_client_manager(
        cls,
        config: HandlerConfig,
        client_manager: AWSClientManager,
    ) -> "LifecycleOrchestrator":
        """Build an orchestrator whose managers share the given AWS clients."""
        dns_retry = RetryStrategy(
            max_retries=config.dns_retry_max_attempts,
            base_delay=config.dns_retry_base_delay,
            max_delay=config.dns_retry_max_delay,
        )
        return cls(
            config=config,
            pattern_resolver=PatternResolver(
                client_manager.autoscaling,
                tag_key=config.hostname_tag_key,
                placeholder=config.instance_id_placeholder,
                retry_strategy=dns_retry,
            ),
            ec2_manager=EC2Manager(client_manager.ec2, retry_strategy=dns_retry),
            route53_manager=Route53Manager(
                client_manager.route53, ttl=config.record_ttl, retry_strategy=dns_retry
            ),
            lifecycle_manager=LifecycleManager(
                client_manager.autoscaling, retry_strategy=dns_retry
            ),
        )

    def handle(self, event: LifecycleEvent, deadline: Deadline | None = None) -> EventOutcome:
        """
        Handle one lifecycle event end to end.

        Args:
            event: Decoded lifecycle event
            deadline: Time budget for the event

        Returns:
            EventOutcome describing what was done and the reported verdict
        """
        outcome = EventOutcome(
            instance_id=event.instance_id,
            fleet_name=event.fleet_name,
            transition=event.transition,
        )
        event_logger = LifecycleLogger(event.fleet_name, TRANSITION_LABELS[event.transition])
        event_logger.log_step(
            ActionType.RECEIVE,
            event.instance_id,
            "Lifecycle event received",
            {"hook": event.hook_name},
        )

        try:
            verdict = self._process(event, outcome, event_logger, deadline)
        except MissingPatternTagError as e:
            event_logger.log_skipped(event.instance_id, str(e))
            outcome.skipped = True
            verdict = LifecycleVerdict.CONTINUE
        except HandlerError as e:
            event_logger.log_error(event.instance_id, e)
            outcome.error = f"{type(e).__name__}: {e}"
            verdict = LifecycleVerdict.ABANDON if e.fatal else LifecycleVerdict.CONTINUE
        except Exception as e:
            event_logger.log_error(event.instance_id, e)
            outcome.error = f"{type(e).__name__}: {LogSanitizer.sanitize(str(e))}"
            verdict = LifecycleVerdict.ABANDON

        outcome.verdict = verdict
        self._report(event, verdict, outcome, event_logger, deadline)
        outcome.log = [entry.to_dict() for entry in event_logger.get_log_entries()]
        return outcome

    def _process(
        self,
        event: LifecycleEvent,
        outcome: EventOutcome,
        event_logger: LifecycleLogger,
        deadline: Deadline | None,
    ) -> LifecycleVerdict:
        pattern = self.pattern_resolver.resolve(event.fleet_name, deadline=deadline)
        event_logger.log_step(
            ActionType.RESOLVE,
            event.instance_id,
            "Hostname pattern resolved",
            {"template": pattern.template, "zone": pattern.zone_id},
        )

        hostname = render_hostname(
            pattern, event.instance_id, self.config.instance_id_placeholder
        )
        outcome.fqdn = hostname.fqdn
        outcome.zone_id = hostname.zone_id
        event_logger.log_debug(
            ActionType.RENDER, event.instance_id, f"Rendered hostname {hostname.fqdn}"
        )

        if event.transition == LifecycleTransition.LAUNCHING:
            return self._handle_launch(event, hostname, outcome, event_logger, deadline)
        return self._handle_terminate(event, hostname, outcome, event_logger, deadline)

    def _handle_launch(
        self,
        event: LifecycleEvent,
        hostname: ResolvedHostname,
        outcome: EventOutcome,
        event_logger: LifecycleLogger,
        deadline: Deadline | None,
    ) -> LifecycleVerdict:
        address = self.ec2_manager.resolve_address(
            event.instance_id, self.config.address_kind, deadline=deadline
        )
        outcome.address = address

        self._check_deadline(deadline, f"upsert {hostname.fqdn}")
        self.route53_manager.upsert(hostname.fqdn, hostname.zone_id, address, deadline=deadline)
        outcome.record_mutated = True
        event_logger.log_step(
            ActionType.UPSERT,
            event.instance_id,
            f"Record {hostname.fqdn} points at {address}",
            {"zone": hostname.zone_id},
        )

        if not self.config.set_instance_name:
            return LifecycleVerdict.CONTINUE

        try:
            self.ec2_manager.tag_instance_name(
                event.instance_id,
                hostname.short_name,
                tag_key=self.config.name_tag_key,
                deadline=deadline,
            )
        except TagWriteFailedError as e:
            outcome.warnings.append(str(e))
            if self.config.tag_failure_abandons:
                event_logger.log_error(event.instance_id, e, action=ActionType.TAG)
                outcome.error = f"{type(e).__name__}: {e}"
                return LifecycleVerdict.ABANDON
            event_logger.log_warning(ActionType.TAG, event.instance_id, e)
            return LifecycleVerdict.CONTINUE

        outcome.tagged = True
        event_logger.log_step(
            ActionType.TAG,
            event.instance_id,
            f"Instance tagged {self.config.name_tag_key}={hostname.short_name}",
        )
        return LifecycleVerdict.CONTINUE

    def _handle_terminate(
        self,
        event: LifecycleEvent,
        hostname: ResolvedHostname,
        outcome: EventOutcome,
        event_logger: LifecycleLogger,
        deadline: Deadline | None,
    ) -> LifecycleVerdict:
        self._check_deadline(deadline, f"delete {hostname.fqdn}")
        deleted = self.route53_manager.delete(hostname.fqdn, hostname.zone_id, deadline=deadline)
        outcome.record_mutated = deleted
        event_logger.log_step(
            ActionType.DELETE,
            event.instance_id,
            f"Record {hostname.fqdn} {'deleted' if deleted else 'already absent'}",
            {"zone": hostname.zone_id},
        )
        return LifecycleVerdict.CONTINUE

    def _check_deadline(self, deadline: Deadline | None, operation: str) -> None:
        if deadline is not None and not deadline.allows(self.config.call_timeout_seconds):
            raise DeadlineExceededError(
                f"Only {deadline.remaining():.2f}s left, not enough to {operation}"
            )

    def _report(
        self,
        event: LifecycleEvent,
        verdict: LifecycleVerdict,
        outcome: EventOutcome,
        event_logger: LifecycleLogger,
        deadline: Deadline | None,
    ) -> None:
        try:
            self.lifecycle_manager.complete(event, verdict, deadline=deadline)
        except LifecycleTokenExpiredError as e:
            # The hook's own timeout default (or an earlier delivery) decided already
            event_logger.log_warning(ActionType.COMPLETE, event.instance_id, e)
            outcome.warnings.append(str(e))
            return
        except Exception as e:
            event_logger.log_error(event.instance_id, e, action=ActionType.COMPLETE)
            outcome.warnings.append(f"{type(e).__name__}: {LogSanitizer.sanitize(str(e))}")
            return

        outcome.completed = True
        event_logger.log_step(
            ActionType.COMPLETE,
            event.instance_id,
            f"Lifecycle action completed with {verdict.value}",
        )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Lambda entry point for lifecycle hook notifications.

    Args:
        event: Lambda event (SNS, EventBridge or a bare lifecycle message)
        context: Lambda context object

    Returns:
        Execution result summary with status code and per-event outcomes
    """
    config = HandlerConfig.from_environment(validate=False)
    configure_logging(config)

    logger.debug(f"Received event: {LogSanitizer.sanitize(json.dumps(event, default=str))}")

    errors = config.validate()
    if errors:
        logger.error(f"Configuration errors: {LogSanitizer.sanitize(str(errors))}")
        return {"statusCode": 400, "body": {"errors": errors}}

    client_manager = AWSClientManager(
        region=config.region, call_timeout_seconds=config.call_timeout_seconds
    )
    orchestrator = LifecycleOrchestrator.from_client_manager(config, client_manager)

    body = process_event(event, context, orchestrator, config)
    return {"statusCode": 200, "body": body}


def process_event(
    event: dict[str, Any],
    context: Any,
    orchestrator: LifecycleOrchestrator,
    config: HandlerConfig,
) -> dict[str, Any]:
    """
    Handle every lifecycle message carried by a Lambda event.

    Messages that cannot be decoded carry no usable action token, so they
    are logged and left for the hook's timeout to resolve. Each message is
    decoded on its own, so one bad SNS record does not stop the others.

    Returns:
        Summary with per-event outcomes and counts of ignored/invalid messages
    """
    results: list[dict[str, Any]] = []
    ignored = 0
    invalid = 0

    for message in extract_messages(event):
        try:
            lifecycle_event = parse_notification(message)
        except InvalidEventError as e:
            logger.error(f"Invalid lifecycle message: {LogSanitizer.sanitize(str(e))}")
            invalid += 1
            continue

        if lifecycle_event is None:
            ignored += 1
            continue

        deadline = Deadline(config.heartbeat_budget_seconds, context)
        outcome = orchestrator.handle(lifecycle_event, deadline)
        results.append(outcome.to_dict())

    logger.info(
        f"Processed {len(results)} lifecycle events ({ignored} ignored, {invalid} invalid)"
    )
    return {"results": results, "ignored": ignored, "invalid": invalid}
