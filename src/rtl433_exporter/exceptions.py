"""Custom exception hierarchy for rtl433_exporter."""

from __future__ import annotations


class Rtl433Error(Exception):
    """Base exception for all rtl433_exporter errors."""


class ConfigError(Rtl433Error):
    """Invalid or missing configuration."""


class ParseError(Rtl433Error):
    """A line of the write payload could not be parsed.

    The whole payload is rejected when any single line is malformed, so
    ``line`` identifies the first offending line and nothing from the
    payload reaches the state store.
    """

    def __init__(self, message: str, *, line: str = "") -> None:
        self.line = line
        super().__init__(message)
