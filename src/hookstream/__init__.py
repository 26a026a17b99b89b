"""Webhook relay publishing inbound events to a downstream stream API."""

__version__ = "1.0.0"
