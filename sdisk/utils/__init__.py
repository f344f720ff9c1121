"""Utility modules for sdisk."""

from .formatters import format_age, format_date, format_file_size, truncate_string

__all__ = ["format_age", "format_date", "format_file_size", "truncate_string"]
