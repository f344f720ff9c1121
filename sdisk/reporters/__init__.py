"""Result rendering for sdisk."""

from .text_reporter import TextReporter

__all__ = ["TextReporter"]
