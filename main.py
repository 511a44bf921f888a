"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the src package.
"""

from src.main import dashboard_snapshot

__all__ = [
    "dashboard_snapshot",
]
