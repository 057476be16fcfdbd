"""EC2 instance address lookup and display-name tagging."""

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from asgdns.exceptions import InstanceNotFoundError, NoAddressOfKindError, TagWriteFailedError
from asgdns.models import AddressKind
from asgdns.utils.aws_client import Deadline, RetryStrategy, error_code
from asgdns.utils.logging import log_debug_api_call

logger = logging.getLogger(__name__)


class EC2Manager:
    """Resolves instance addresses and sets instance display names.

    Handles:
    - Private or public address lookup for the record value
    - Name tag on launched instances, best effort
    """

    NOT_FOUND_CODES = {"InvalidInstanceID.NotFound", "InvalidInstanceID.Malformed"}

    ADDRESS_FIELDS = {
        AddressKind.PRIVATE: "PrivateIpAddress",
        AddressKind.PUBLIC: "PublicIpAddress",
    }

    def __init__(self, ec2_client: Any, retry_strategy: Optional[RetryStrategy] = None):
        """
        Initialize EC2 manager.

        Args:
            ec2_client: Boto3 EC2 client
            retry_strategy: Backoff used on throttling
        """
        self.ec2 = ec2_client
        self.retry_strategy = retry_strategy or RetryStrategy()

    def get_instance_details(
        self, instance_id: str, deadline: Optional[Deadline] = None
    ) -> Dict[str, Any]:
        """
        Get detailed information about a specific instance.

        Raises:
            InstanceNotFoundError: If EC2 does not know the instance
        """
        log_debug_api_call("describe_instances", "ec2", {"InstanceIds": [instance_id]})
        try:
            response = self.retry_strategy.execute_with_retry(
                self.ec2.describe_instances, InstanceIds=[instance_id], deadline=deadline
            )
        except ClientError as e:
            if error_code(e) in self.NOT_FOUND_CODES:
                raise InstanceNotFoundError(f"Instance {instance_id} not found")
            raise

        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                if instance.get("InstanceId") == instance_id:
                    return instance

        raise InstanceNotFoundError(f"Instance {instance_id} not found")

    def resolve_address(
        self,
        instance_id: str,
        kind: AddressKind = AddressKind.PRIVATE,
        deadline: Optional[Deadline] = None,
    ) -> str:
        """
        Look up the instance address the DNS record should point at.

        Args:
            instance_id: EC2 instance ID
            kind: Private or public address

        Returns:
            IPv4 address

        Raises:
            InstanceNotFoundError: If the instance does not exist
            NoAddressOfKindError: If the instance has no address of that kind
        """
        instance = self.get_instance_details(instance_id, deadline=deadline)
        address = instance.get(self.ADDRESS_FIELDS[kind])
        if not address:
            raise NoAddressOfKindError(
                f"Instance {instance_id} has no {kind.value} IPv4 address"
            )

        logger.info(f"Resolved {kind.value} address {address} for instance {instance_id}")
        return address

    def tag_instance_name(
        self,
        instance_id: str,
        name: str,
        tag_key: str = "Name",
        deadline: Optional[Deadline] = None,
    ) -> None:
        """
        Set the instance display-name tag.

        Raises:
            TagWriteFailedError: If EC2 rejects the tag write or the call
                fails at the transport level (for example a read timeout)
        """
        tags = [{"Key": tag_key, "Value": name}]
        log_debug_api_call("create_tags", "ec2", {"Resources": [instance_id], "Tags": tags})
        try:
            self.retry_strategy.execute_with_retry(
                self.ec2.create_tags, Resources=[instance_id], Tags=tags, deadline=deadline
            )
        except (ClientError, BotoCoreError) as e:
            reason = error_code(e) if isinstance(e, ClientError) else type(e).__name__
            raise TagWriteFailedError(
                f"Could not set {tag_key}={name} on instance {instance_id}: {reason}"
            )

        logger.info(f"Tagged instance {instance_id} with {tag_key}={name}")
