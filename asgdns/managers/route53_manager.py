"""Route 53 address record management.

Records are only ever addressed by the exact name and zone rendered for an
event. Concurrent writers rely on Route 53 applying each change batch
atomically, so no local locking is done.
"""

import logging
from typing import Any, Optional

from botocore.exceptions import ClientError

from asgdns.exceptions import DnsChangeError, DnsProviderThrottledError, ZoneNotFoundError
from asgdns.models import DnsRecord
from asgdns.utils.aws_client import (
    RETRYABLE_ERROR_CODES,
    Deadline,
    RetryStrategy,
    error_code,
    error_message,
)
from asgdns.utils.logging import log_debug_api_call

logger = logging.getLogger(__name__)

RECORD_TYPE = "A"


def _normalize_name(name: str) -> str:
    return name.rstrip(".").lower()


class Route53Manager:
    """Manages the address record for one rendered hostname."""

    def __init__(
        self,
        route53_client: Any,
        ttl: int = 300,
        retry_strategy: Optional[RetryStrategy] = None,
    ):
        """
        Initialize Route 53 manager.

        Args:
            route53_client: Boto3 Route 53 client
            ttl: TTL for records created by upsert
            retry_strategy: Backoff used on throttling
        """
        self.route53 = route53_client
        self.ttl = ttl
        self.retry_strategy = retry_strategy or RetryStrategy()

    def upsert(
        self,
        fqdn: str,
        zone_id: str,
        address: str,
        deadline: Optional[Deadline] = None,
    ) -> DnsRecord:
        """
        Create or replace the address record.

        An identical existing record is left as it is by Route 53, so
        repeated calls leave the zone unchanged.

        Returns:
            The record as written
        """
        record = DnsRecord(
            name=fqdn, zone_id=zone_id, value=address, ttl=self.ttl, values=(address,)
        )
        self._change(zone_id, "UPSERT", record, deadline)
        logger.info(f"Upserted {RECORD_TYPE} record {fqdn} -> {address} in zone {zone_id}")
        return record

    def resolve_existing(
        self,
        fqdn: str,
        zone_id: str,
        deadline: Optional[Deadline] = None,
    ) -> Optional[DnsRecord]:
        """
        Look up the address record with exactly this name.

        Returns:
            The existing record, or None if the zone has no such record
        """
        params = {
            "HostedZoneId": zone_id,
            "StartRecordName": fqdn,
            "StartRecordType": RECORD_TYPE,
            "MaxItems": "1",
        }
        log_debug_api_call("list_resource_record_sets", "route53", params)
        try:
            response = self.retry_strategy.execute_with_retry(
                self.route53.list_resource_record_sets, deadline=deadline, **params
            )
        except ClientError as e:
            raise self._translate_error(e, zone_id, f"look up {fqdn}")

        for record_set in response.get("ResourceRecordSets", []):
            if record_set.get("Type") != RECORD_TYPE:
                continue
            if _normalize_name(record_set.get("Name", "")) != _normalize_name(fqdn):
                continue

            if "AliasTarget" in record_set:
                raise DnsChangeError(
                    f"{fqdn} in zone {zone_id} is an alias record and is not managed here"
                )

            values = tuple(r["Value"] for r in record_set.get("ResourceRecords", []))
            return DnsRecord(
                name=fqdn,
                zone_id=zone_id,
                value=values[0] if values else "",
                ttl=int(record_set.get("TTL", self.ttl)),
                values=values,
                record_set=record_set,
            )

        return None

    def delete(
        self,
        fqdn: str,
        zone_id: str,
        deadline: Optional[Deadline] = None,
    ) -> bool:
        """
        Delete the address record if it exists.

        Route 53 only deletes a record when the change repeats its exact
        values, TTL and routing fields, so the current record set is looked
        up first and replayed as listed.

        Returns:
            True if a record was deleted, False if it was already absent
        """
        existing = self.resolve_existing(fqdn, zone_id, deadline=deadline)
        if existing is None:
            logger.info(f"No {RECORD_TYPE} record {fqdn} in zone {zone_id}; nothing to delete")
            return False

        try:
            self._change(zone_id, "DELETE", existing, deadline)
        except DnsChangeError as e:
            # Removed by another writer between lookup and delete
            if "InvalidChangeBatch" in str(e) and "not found" in str(e).lower():
                logger.info(f"{RECORD_TYPE} record {fqdn} disappeared before delete")
                return False
            raise

        logger.info(f"Deleted {RECORD_TYPE} record {fqdn} -> {existing.value} in zone {zone_id}")
        return True

    def _change(
        self,
        zone_id: str,
        action: str,
        record: DnsRecord,
        deadline: Optional[Deadline],
    ) -> None:
        if action == "DELETE" and record.record_set is not None:
            # Route 53 deletes only when every field matches the stored set
            resource_record_set = dict(record.record_set)
        else:
            resource_record_set = {
                "Name": record.name,
                "Type": record.record_type,
                "TTL": record.ttl,
                "ResourceRecords": [{"Value": v} for v in record.values or (record.value,)],
            }
        change_batch = {
            "Comment": f"Auto Scaling lifecycle {action.lower()} for {record.name}",
            "Changes": [{"Action": action, "ResourceRecordSet": resource_record_set}],
        }
        log_debug_api_call(
            "change_resource_record_sets",
            "route53",
            {"HostedZoneId": zone_id, "Action": action, "Name": record.name},
        )
        try:
            self.retry_strategy.execute_with_retry(
                self.route53.change_resource_record_sets,
                HostedZoneId=zone_id,
                ChangeBatch=change_batch,
                deadline=deadline,
            )
        except ClientError as e:
            raise self._translate_error(e, zone_id, f"{action.lower()} {record.name}")

    def _translate_error(self, error: ClientError, zone_id: str, operation: str) -> Exception:
        """Map a Route 53 ClientError to the handler's error taxonomy."""
        code = error_code(error)
        message = error_message(error)

        if code == "NoSuchHostedZone":
            return ZoneNotFoundError(f"Hosted zone {zone_id} not found")
        if code in RETRYABLE_ERROR_CODES:
            return DnsProviderThrottledError(
                f"Route 53 kept returning {code} while trying to {operation}"
            )
        return DnsChangeError(f"Route 53 rejected {operation}: {code} {message}".strip())
