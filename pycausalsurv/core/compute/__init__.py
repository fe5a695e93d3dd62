"""
Shared compute infrastructure for pycausalsurv.

Submodules:
    timing: Execution timing utilities
"""

from pycausalsurv.core.compute.timing import Timer

__all__ = [
    "Timer",
]
