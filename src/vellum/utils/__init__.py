"""
Vellum Utilities Package.

Common utilities for error handling and source context tracking.
"""

from vellum.utils.errors import (
    InvalidOptimizerModeError,
    NodeLookupError,
    Source,
    VellumError,
)

__all__ = [
    "VellumError",
    "NodeLookupError",
    "InvalidOptimizerModeError",
    "Source",
]
