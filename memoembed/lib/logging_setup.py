"""Logging configuration for host applications."""

import logging

from memoembed.lib.config import get_settings


def setup_logging(verbose: bool | None = None) -> None:
    """Configure root logging for the library.

    Args:
        verbose: Force debug output; None reads MEMOEMBED_VERBOSE
    """
    if verbose is None:
        verbose = get_settings().verbose
    level = logging.DEBUG if verbose else logging.INFO
    format_str = "[%(asctime)s] %(levelname)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_str,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
