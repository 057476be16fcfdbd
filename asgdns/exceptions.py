"""Exception hierarchy for the ASG DNS handler.

Every error carries a ``fatal`` flag. Fatal errors on the critical path make
the handler report ABANDON for the lifecycle action; non-fatal ones are
logged and never change the verdict.
"""


class HandlerError(Exception):
    """Base class for handler errors."""

    fatal = True

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(HandlerError):
    """Raised for configuration validation errors."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)


class InvalidEventError(HandlerError):
    """The inbound notification could not be decoded."""


class MissingPatternTagError(HandlerError):
    """The Auto Scaling group does not declare a hostname pattern."""

    fatal = False


class MalformedPatternError(HandlerError):
    """The hostname pattern tag value cannot be parsed."""


class MissingSeparatorError(MalformedPatternError):
    """The pattern has no `@` between template and zone id."""


class AmbiguousSeparatorError(MalformedPatternError):
    """The pattern has more than one `@`."""


class EmptyTemplateError(MalformedPatternError):
    """The hostname template part of the pattern is empty."""


class EmptyZoneIdError(MalformedPatternError):
    """The zone id part of the pattern is empty."""


class RepeatedPlaceholderError(MalformedPatternError):
    """The instance-id placeholder appears more than once in the template."""


class InvalidHostnameError(MalformedPatternError):
    """The rendered hostname is not a valid DNS name."""


class InstanceNotFoundError(HandlerError):
    """The instance does not exist in EC2."""


class NoAddressOfKindError(HandlerError):
    """The instance has no address of the requested kind."""


class ZoneNotFoundError(HandlerError):
    """The hosted zone does not exist."""


class DnsProviderThrottledError(HandlerError):
    """Route 53 kept throttling after all retry attempts."""


class DnsChangeError(HandlerError):
    """Route 53 rejected a record change."""


class TagWriteFailedError(HandlerError):
    """Setting the instance display-name tag failed."""

    fatal = False


class LifecycleTokenExpiredError(HandlerError):
    """The lifecycle action is no longer pending (expired or already completed)."""

    fatal = False


class LifecycleCompletionError(HandlerError):
    """Completing the lifecycle action failed for another reason."""


class DeadlineExceededError(HandlerError):
    """Not enough of the heartbeat budget remains to confirm a mutation."""
