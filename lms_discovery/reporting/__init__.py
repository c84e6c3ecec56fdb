"""Reporting module - JSON output."""

from .json_reporter import JsonReporter, error_output

__all__ = [
    "JsonReporter",
    "error_output",
]
