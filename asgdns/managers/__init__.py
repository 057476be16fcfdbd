"""Managers wrapping the AWS services the handler talks to."""

from asgdns.managers.ec2_manager import EC2Manager
from asgdns.managers.lifecycle_manager import LifecycleManager
from asgdns.managers.route53_manager import Route53Manager

__all__ = ["EC2Manager", "LifecycleManager", "Route53Manager"]
