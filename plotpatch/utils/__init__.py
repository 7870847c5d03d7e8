"""
Utility functions for plotpatch.

This module provides:
- Logging setup and configuration
- JSON serialization utilities that understand numpy types
"""

from .logging import setup_logging, setup_notebook_logging
from .json_utils import convert_for_json_serialization, safe_json_dump

__all__ = [
    # Logging utilities
    "setup_logging",
    "setup_notebook_logging",

    # JSON utilities
    "convert_for_json_serialization",
    "safe_json_dump",
]
