"""Pytest configuration and shared fixtures."""

import json
import os
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from asgdns.handler import LifecycleOrchestrator
from asgdns.hostname.pattern import PatternResolver
from asgdns.managers.ec2_manager import EC2Manager
from asgdns.managers.lifecycle_manager import LifecycleManager
from asgdns.managers.route53_manager import Route53Manager
from asgdns.utils.aws_client import RetryStrategy
from asgdns.utils.config import HandlerConfig

# Set AWS region for tests
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_REGION", "us-east-1")

ACTION_TOKEN = "d4c1e7a2-5b8f-4e0a-9c3d-2f6b1a8e7d90"


def make_client_error(code: str, message: str = "", operation: str = "TestOperation") -> ClientError:
    """Build a botocore ClientError with the given code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def lifecycle_message(
    transition: str = "autoscaling:EC2_INSTANCE_LAUNCHING",
    instance_id: str = "i-abc",
    fleet_name: str = "web-asg",
    hook_name: str = "dns-hook",
    token: str = ACTION_TOKEN,
) -> Dict:
    """Lifecycle hook message as published by Auto Scaling."""
    return {
        "Origin": "EC2",
        "Destination": "AutoScalingGroup",
        "Service": "AWS Auto Scaling",
        "Time": "2024-05-01T12:00:00.000Z",
        "AccountId": "123456789012",
        "RequestId": "b3f0a1c2-0000-0000-0000-000000000000",
        "AutoScalingGroupName": fleet_name,
        "EC2InstanceId": instance_id,
        "LifecycleTransition": transition,
        "LifecycleHookName": hook_name,
        "LifecycleActionToken": token,
    }


def sns_event(*messages: Dict) -> Dict:
    """Wrap lifecycle messages in an SNS Lambda event."""
    return {
        "Records": [
            {
                "EventSource": "aws:sns",
                "Sns": {
                    "Type": "Notification",
                    "Subject": "Auto Scaling:  Lifecycle action",
                    "Message": json.dumps(message),
                },
            }
            for message in messages
        ]
    }


class FakeRoute53:
    """In-memory Route 53 with the change and list semantics the handler relies on."""

    def __init__(self, zone_ids: Optional[List[str]] = None):
        self.zones: Dict[str, Dict[tuple, Dict]] = {z: {} for z in (zone_ids or [])}
        self.change_calls: List[Dict] = []
        self.list_calls: List[Dict] = []

    @staticmethod
    def _fqdn(name: str) -> str:
        return name.rstrip(".").lower() + "."

    def _zone(self, zone_id: str, operation: str) -> Dict:
        if zone_id not in self.zones:
            raise make_client_error(
                "NoSuchHostedZone", f"No hosted zone found with ID: {zone_id}", operation
            )
        return self.zones[zone_id]

    def put_record(self, zone_id: str, name: str, value, ttl: int = 300, **fields) -> None:
        """Store an A record; ``value`` may be one address or a list of them."""
        values = [value] if isinstance(value, str) else list(value)
        self.zones.setdefault(zone_id, {})[(self._fqdn(name), "A")] = {
            "TTL": ttl,
            "ResourceRecords": [{"Value": v} for v in values],
            **fields,
        }

    def get_value(self, zone_id: str, name: str) -> Optional[str]:
        record = self.zones.get(zone_id, {}).get((self._fqdn(name), "A"))
        return record["ResourceRecords"][0]["Value"] if record else None

    def change_resource_record_sets(self, HostedZoneId: str, ChangeBatch: Dict) -> Dict:
        self.change_calls.append({"HostedZoneId": HostedZoneId, "ChangeBatch": ChangeBatch})
        zone = self._zone(HostedZoneId, "ChangeResourceRecordSets")

        for change in ChangeBatch["Changes"]:
            record_set = change["ResourceRecordSet"]
            key = (self._fqdn(record_set["Name"]), record_set["Type"])
            body = {k: v for k, v in record_set.items() if k not in ("Name", "Type")}

            if change["Action"] == "UPSERT":
                zone[key] = body
            elif change["Action"] == "DELETE":
                if key not in zone:
                    raise make_client_error(
                        "InvalidChangeBatch",
                        f"[Tried to delete resource record set [name='{key[0]}', "
                        f"type='{key[1]}'] but it was not found]",
                        "ChangeResourceRecordSets",
                    )
                if zone[key] != body:
                    raise make_client_error(
                        "InvalidChangeBatch",
                        "[Tried to delete resource record set but the values provided "
                        "do not match the current values]",
                        "ChangeResourceRecordSets",
                    )
                del zone[key]

        return {"ChangeInfo": {"Id": "/change/C1", "Status": "PENDING"}}

    def list_resource_record_sets(self, HostedZoneId: str, **kwargs) -> Dict:
        self.list_calls.append({"HostedZoneId": HostedZoneId, **kwargs})
        zone = self._zone(HostedZoneId, "ListResourceRecordSets")

        start = self._fqdn(kwargs.get("StartRecordName", ""))
        max_items = int(kwargs.get("MaxItems", "100"))
        keys = sorted(k for k in zone if k[0] >= start)[:max_items]
        return {
            "ResourceRecordSets": [
                {"Name": name, "Type": record_type, **zone[(name, record_type)]}
                for name, record_type in keys
            ]
        }

    @property
    def mutation_count(self) -> int:
        return len(self.change_calls)

    @property
    def call_count(self) -> int:
        return len(self.change_calls) + len(self.list_calls)


class FakeAutoScaling:
    """Auto Scaling client fake holding group tags and completed lifecycle actions."""

    def __init__(self, tags: Optional[Dict[str, Dict[str, str]]] = None):
        self.tags = tags or {}
        self.completed: List[Dict] = []
        self.complete_error: Optional[Exception] = None

    def describe_tags(self, Filters: List[Dict]) -> Dict:
        wanted = {f["Name"]: f["Values"] for f in Filters}
        result = []
        for group in wanted.get("auto-scaling-group", []):
            for key, value in self.tags.get(group, {}).items():
                if "key" in wanted and key not in wanted["key"]:
                    continue
                result.append(
                    {
                        "ResourceId": group,
                        "ResourceType": "auto-scaling-group",
                        "Key": key,
                        "Value": value,
                        "PropagateAtLaunch": False,
                    }
                )
        return {"Tags": result}

    def complete_lifecycle_action(self, **kwargs) -> Dict:
        if self.complete_error is not None:
            raise self.complete_error
        self.completed.append(kwargs)
        return {}


def instance_reservations(
    instance_id: str = "i-abc",
    private_ip: Optional[str] = "10.0.0.5",
    public_ip: Optional[str] = None,
) -> Dict:
    """describe_instances response for one instance."""
    instance = {"InstanceId": instance_id, "State": {"Name": "pending"}}
    if private_ip:
        instance["PrivateIpAddress"] = private_ip
    if public_ip:
        instance["PublicIpAddress"] = public_ip
    return {"Reservations": [{"Instances": [instance]}]}


@pytest.fixture
def no_retry() -> RetryStrategy:
    """Retry strategy that never sleeps."""
    return RetryStrategy(max_retries=0)


@pytest.fixture
def handler_config() -> HandlerConfig:
    """Default handler configuration."""
    return HandlerConfig()


@pytest.fixture
def route53() -> FakeRoute53:
    """Fake Route 53 with hosted zone Z123."""
    return FakeRoute53(zone_ids=["Z123"])


@pytest.fixture
def autoscaling() -> FakeAutoScaling:
    """Fake Auto Scaling with web-asg opted in."""
    return FakeAutoScaling(tags={"web-asg": {"asg:hostname_pattern": "web-#instanceid.example.com@Z123"}})


@pytest.fixture
def ec2() -> MagicMock:
    """EC2 client mock knowing instance i-abc at 10.0.0.5."""
    client = MagicMock()
    client.describe_instances.return_value = instance_reservations()
    return client


@pytest.fixture
def orchestrator(handler_config, route53, autoscaling, ec2, no_retry) -> LifecycleOrchestrator:
    """Orchestrator wired to the fakes."""
    return LifecycleOrchestrator(
        config=handler_config,
        pattern_resolver=PatternResolver(autoscaling, retry_strategy=no_retry),
        ec2_manager=EC2Manager(ec2, retry_strategy=no_retry),
        route53_manager=Route53Manager(route53, retry_strategy=no_retry),
        lifecycle_manager=LifecycleManager(autoscaling, retry_strategy=no_retry),
    )
