"""Exceptions raised by the coverage pipeline."""

from __future__ import annotations


class CovlensError(Exception):
    """Base class for covlens failures."""


class LcovError(CovlensError):
    """An lcov or genhtml invocation exited non-zero or produced unusable output."""

    def __init__(self, message: str, command: list[str] | None = None, returncode: int | None = None, output: str = ""):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.output = output


class ArtifactMismatchError(CovlensError):
    """A downloaded baseline artifact did not contain exactly one file."""
