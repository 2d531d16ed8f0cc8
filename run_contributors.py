"""Convenience shim to run the Bitbucket contributor workflow from a checkout."""

from __future__ import annotations

from src.pipeline.runner import main


if __name__ == "__main__":
    main()
