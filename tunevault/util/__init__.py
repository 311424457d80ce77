"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import ensure_directory, format_size
from .timeutil import epoch_millis_to_iso, format_duration, now_epoch_millis

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "ensure_directory",
    "format_size",
    # timeutil
    "epoch_millis_to_iso",
    "format_duration",
    "now_epoch_millis",
]
