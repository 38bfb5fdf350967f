"""Logger helper for cpuline.

Configures a minimal stderr handler the first time a logger is requested,
unless the caller already configured logging through `configure`.
"""

import logging

_configured = False

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, auto_configure: bool = True) -> logging.Logger:
    """
    Get a logger for a cpuline module.

    Args:
        name: Logger name (usually the module's __name__).
        auto_configure: Configure logging on first use if nobody else has.
    """
    global _configured

    if auto_configure and not _configured:
        configure(logging.WARNING)

    return logging.getLogger(name)


def configure(level: int) -> None:
    """Configure the root handler and level for the cpuline package."""
    global _configured

    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    logging.getLogger("cpuline").setLevel(level)
    _configured = True


def level_for_verbosity(verbosity: int) -> int:
    """Map the count of -v flags to a logging level."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING
