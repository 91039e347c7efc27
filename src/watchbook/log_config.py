# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""Console logging setup. Call setup_logging() once at CLI start-up."""

import logging

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s.%(funcName)s  %(message)s"


class _WatchBookHandler(logging.StreamHandler):
    """Marker subclass so setup_logging() can detect a previous call."""


def parse_level(value: str | int) -> int:
    """Convert 'INFO' / 'debug' / 20 into a logging level number."""
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {value!r}")
    return level


def setup_logging(level: str | int = logging.WARNING) -> None:
    """
    Configure the root logger with a single console handler.

    Safe to call multiple times: a second call only updates the level.
    """
    numeric_level = parse_level(level)
    root = logging.getLogger()

    for handler in root.handlers:
        if isinstance(handler, _WatchBookHandler):
            handler.setLevel(numeric_level)
            root.setLevel(numeric_level)
            return

    root.setLevel(numeric_level)

    console = _WatchBookHandler()
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)
