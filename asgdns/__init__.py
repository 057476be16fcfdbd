"""ASG DNS Handler - DNS records and instance names driven by Auto Scaling lifecycle hooks."""

__version__ = "1.0.0"

from asgdns.models import (
    AddressKind,
    DnsRecord,
    EventOutcome,
    HostnamePattern,
    LifecycleEvent,
    LifecycleTransition,
    LifecycleVerdict,
    ResolvedHostname,
)

__all__ = [
    "AddressKind",
    "DnsRecord",
    "EventOutcome",
    "HostnamePattern",
    "LifecycleEvent",
    "LifecycleTransition",
    "LifecycleVerdict",
    "ResolvedHostname",
]
