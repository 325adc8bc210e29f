"""eftdoc utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Prerequisite checks run by ``eftdoc check``
"""

from eftdoc.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
