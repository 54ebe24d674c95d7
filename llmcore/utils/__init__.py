"""Shared utility modules.

- logging: rich console logging setup and rejected-attempt log files
"""

from .logging import RejectionLog, setup_logging

__all__ = ["RejectionLog", "setup_logging"]
