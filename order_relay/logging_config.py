"""
logging_config.py — Centralized Logging Configuration for the Order Relay

This module configures unified logging behavior for the entire application.
It ensures that all modules log messages consistently to the console and, optionally, to a file.

Features:
    • Combined console and file logging output
    • Process ID tagging for multi-process visibility
    • Standardized log format for all modules
    • Reduced verbosity for external dependencies (e.g., httpx)
"""

import logging
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'


def setup_logging(level="INFO", log_file="webhook.log"):
    """
    Configures the global logging system for the application.

    The configuration includes:
        - Log level: taken from settings (INFO by default)
        - Log format: timestamp, log level, process ID, and message
        - Output destinations:
            1. Console (stdout): real-time logs, Docker/Kubernetes compatible
            2. File: `log_file` (persistent log), skipped when empty
        - Reduced verbosity for third-party libraries such as httpx

    Args:
        level (str): Logging level name.
        log_file (str): Path of the log file, or an empty string for console only.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Reduce verbosity from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name):
    """Returns the logger for an order_relay module; handlers come from setup_logging."""
    return logging.getLogger(name)
