"""Structured logging utilities."""

from .audit import JsonlAuditLogger, OperationEvent, sanitize_arguments, utc_timestamp

__all__ = ["JsonlAuditLogger", "OperationEvent", "sanitize_arguments", "utc_timestamp"]
