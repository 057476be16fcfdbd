"""Decoding of inbound lifecycle notifications."""

from asgdns.events.receiver import decode_message, extract_messages, parse_notification

__all__ = ["decode_message", "extract_messages", "parse_notification"]
