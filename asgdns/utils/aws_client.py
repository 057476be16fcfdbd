"""AWS client management for the ASG DNS handler."""

import logging
import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERROR_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "PriorRequestNotComplete",
    "ServiceUnavailable",
    "InternalError",
    "RequestTimeout",
}


def error_code(error: ClientError) -> str:
    """Extract the AWS error code from a ClientError."""
    return error.response.get("Error", {}).get("Code", "")


def error_message(error: ClientError) -> str:
    """Extract the AWS error message from a ClientError."""
    return error.response.get("Error", {}).get("Message", "")


class Deadline:
    """Time budget for handling one lifecycle event.

    The budget is the smaller of the configured heartbeat budget and the time
    the Lambda runtime has left, minus a safety margin for reporting the verdict.
    """

    def __init__(
        self,
        budget_seconds: float,
        context: Any = None,
        safety_margin_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        remaining = budget_seconds
        if context is not None and hasattr(context, "get_remaining_time_in_millis"):
            lambda_remaining = context.get_remaining_time_in_millis() / 1000.0
            remaining = min(remaining, lambda_remaining - safety_margin_seconds)
        self._expires_at = self._clock() + remaining

    def remaining(self) -> float:
        """Seconds left in the budget (never negative)."""
        return max(0.0, self._expires_at - self._clock())

    def allows(self, seconds: float) -> bool:
        """Check whether an operation of the given duration fits in the budget."""
        return self.remaining() > seconds


class RetryStrategy:
    """Retry strategy with exponential backoff and jitter."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 5.0,
        jitter: bool = True,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter

    def execute_with_retry(
        self,
        operation: Callable[..., T],
        *args: Any,
        deadline: Deadline | None = None,
        **kwargs: Any,
    ) -> T:
        """Execute operation with exponential backoff retry.

        Retries stop early when the next backoff would run past the deadline;
        the last error is then raised unchanged.
        """
        for attempt in range(self.max_retries + 1):
            try:
                return operation(*args, **kwargs)
            except ClientError as e:
                code = error_code(e)
                if not self._is_retryable_error(code) or attempt >= self.max_retries:
                    raise

                delay = self._calculate_delay(attempt)
                if deadline is not None and not deadline.allows(delay):
                    logger.warning(
                        f"Retryable error {code}, but only {deadline.remaining():.2f}s "
                        f"of budget left; giving up"
                    )
                    raise

                logger.warning(
                    f"Retryable error {code}, attempt {attempt + 1}/{self.max_retries + 1}, "
                    f"waiting {delay:.2f}s"
                )
                time.sleep(delay)

        raise RuntimeError("Unexpected retry loop exit")

    def _is_retryable_error(self, code: str) -> bool:
        """Check if error is retryable."""
        return code in RETRYABLE_ERROR_CODES

    def _calculate_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and optional jitter."""
        delay: float = min(self.base_delay * (2**attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay


class AWSClientManager:
    """Manages boto3 clients with per-call timeouts.

    Clients are created lazily from one session. botocore's own retries are
    disabled so that retry timing stays within the event's deadline budget.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        call_timeout_seconds: float = 5.0,
        session: boto3.Session | None = None,
    ):
        self.region = region
        self.call_timeout_seconds = call_timeout_seconds
        self._session = session
        self._clients: dict[str, Any] = {}

    def _get_session(self) -> boto3.Session:
        """Get or create boto3 session."""
        if self._session is None:
            self._session = boto3.Session(region_name=self.region)
        return self._session

    def get_client(self, service_name: str) -> Any:
        """Get boto3 client for specified service."""
        if service_name not in self._clients:
            session = self._get_session()
            config = Config(
                connect_timeout=self.call_timeout_seconds,
                read_timeout=self.call_timeout_seconds,
                retries={"max_attempts": 0},
            )
            self._clients[service_name] = session.client(
                service_name,
                config=config,
                region_name=self.region,  # type: ignore[call-overload]
            )
        return self._clients[service_name]

    @property
    def ec2(self) -> Any:
        """Get EC2 client."""
        return self.get_client("ec2")

    @property
    def route53(self) -> Any:
        """Get Route 53 client."""
        return self.get_client("route53")

    @property
    def autoscaling(self) -> Any:
        """Get Auto Scaling client."""
        return self.get_client("autoscaling")
