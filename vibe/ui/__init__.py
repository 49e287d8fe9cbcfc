"""Console user interface."""

from .console_host import ConsoleHost

__all__ = ["ConsoleHost"]
