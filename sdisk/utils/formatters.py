"""Formatting utilities for sdisk output."""

from datetime import datetime, timedelta
from typing import Optional


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable binary units.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human readable size string, e.g. ``1.5 KiB``.
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ['KiB', 'MiB', 'GiB', 'TiB']:
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} PiB"


def format_age(age: Optional[timedelta]) -> str:
    """Format an age as whole days."""
    if age is None:
        return "unknown"
    days = age.days
    return "1 day" if days == 1 else f"{days} days"


def format_date(dt: Optional[datetime], short: bool = False) -> str:
    """Format datetime for display.

    Args:
        dt: Datetime to format.
        short: If True, use short format.

    Returns:
        Formatted date string, or ``-`` when there is no date.
    """
    if dt is None:
        return "-"
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    return dt.strftime('%Y-%m-%d %H:%M:%S')


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate string to maximum length, keeping its end."""
    if len(text) <= max_length:
        return text

    return suffix + text[len(text) - (max_length - len(suffix)):]
