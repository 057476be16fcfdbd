"""Data models for the ASG DNS handler."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LifecycleTransition(Enum):
    """Lifecycle transitions the handler acts on."""

    LAUNCHING = "autoscaling:EC2_INSTANCE_LAUNCHING"
    TERMINATING = "autoscaling:EC2_INSTANCE_TERMINATING"


class LifecycleVerdict(Enum):
    """Result reported back to the Auto Scaling lifecycle hook."""

    CONTINUE = "CONTINUE"
    ABANDON = "ABANDON"


class AddressKind(Enum):
    """Which instance address the DNS record points at."""

    PRIVATE = "private"
    PUBLIC = "public"


@dataclass(frozen=True)
class LifecycleEvent:
    """A decoded lifecycle hook notification."""

    fleet_name: str
    instance_id: str
    transition: LifecycleTransition
    hook_name: str
    action_token: str


@dataclass(frozen=True)
class HostnamePattern:
    """Hostname template and hosted zone parsed from a `<template>@<zoneId>` tag."""

    template: str
    zone_id: str


@dataclass(frozen=True)
class ResolvedHostname:
    """Concrete hostname rendered for one instance."""

    fqdn: str
    zone_id: str

    @property
    def short_name(self) -> str:
        """Leading label of the hostname, used as the instance display name."""
        return self.fqdn.split(".", 1)[0]


@dataclass(frozen=True)
class DnsRecord:
    """An address record as stored in a Route 53 hosted zone.

    ``value`` is the first address; ``values`` holds all of them when the
    record was read back from the zone. ``record_set`` keeps the listed
    resource record set so a DELETE can repeat it exactly.
    """

    name: str
    zone_id: str
    value: str
    ttl: int
    record_type: str = "A"
    values: tuple[str, ...] = ()
    record_set: dict[str, Any] | None = field(default=None, compare=False, repr=False)


@dataclass
class EventOutcome:
    """Result of handling a single lifecycle event."""

    instance_id: str
    fleet_name: str
    transition: LifecycleTransition
    verdict: LifecycleVerdict | None = None
    fqdn: str | None = None
    zone_id: str | None = None
    address: str | None = None
    skipped: bool = False
    record_mutated: bool = False
    tagged: bool = False
    completed: bool = False
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    log: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert the outcome to a dictionary for the Lambda response."""
        result: dict[str, Any] = {
            "instance_id": self.instance_id,
            "fleet_name": self.fleet_name,
            "transition": self.transition.value,
            "verdict": self.verdict.value if self.verdict else None,
            "skipped": self.skipped,
            "record_mutated": self.record_mutated,
            "tagged": self.tagged,
            "completed": self.completed,
        }
        if self.fqdn:
            result["fqdn"] = self.fqdn
            result["zone_id"] = self.zone_id
        if self.address:
            result["address"] = self.address
        if self.error:
            result["error"] = self.error
        if self.warnings:
            result["warnings"] = list(self.warnings)
        if self.log:
            result["log"] = list(self.log)
        return result
