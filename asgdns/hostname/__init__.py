"""Hostname pattern parsing and rendering.

A group opts in by carrying a tag whose value is `<template>@<zoneId>`, for
example `web-#instanceid.example.com@Z123`. The template is rendered per
instance by substituting the instance-id placeholder.
"""

from asgdns.hostname.pattern import PatternResolver, parse_hostname_pattern
from asgdns.hostname.renderer import extract_instance_id, render_hostname

__all__ = [
    "PatternResolver",
    "parse_hostname_pattern",
    "extract_instance_id",
    "render_hostname",
]
