"""
errors.py — Exception taxonomy for Graphico Brief.

  GenerationError  — Gemini failed or returned data that does not fit the schema
  StorageReadError — a stored value exists but cannot be parsed
  UserInputError   — an action was requested that the current state does not allow
"""

from __future__ import annotations


class GraphicoError(Exception):
    """Base class for all Graphico errors."""


class GenerationError(GraphicoError):
    """The brief or evaluation capability errored or produced an unusable payload."""


class StorageReadError(GraphicoError):
    """Persisted data is present but corrupt. Always recovered inside the gateway."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Corrupt value under '{key}': {reason}")
        self.key = key
        self.reason = reason


class UserInputError(GraphicoError):
    """Raised when a user action is not valid for the current project/wizard state."""
