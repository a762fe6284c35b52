"""
Logging setup shared by the command-line scripts.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)-8s - %(message)s"


def setup_logging(level: str = "WARNING") -> None:
    """Configure the root logger for console output at ``level``."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, force=True)
