"""Logging setup for the CLI and the API server."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(level: str | int = logging.INFO) -> None:
    """Route the root logger through a :class:`~rich.logging.RichHandler`."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
