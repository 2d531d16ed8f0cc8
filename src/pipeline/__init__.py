"""Bitbucket contributor pipeline: CLI configuration and run orchestration."""

from .runner import RunSummary, main, run

__all__ = ["RunSummary", "main", "run"]
