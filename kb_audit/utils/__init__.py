"""Shared utilities (logging setup and structured events)."""

from .logging import JsonlFormatter, close_logging, log_event, setup_logging

__all__ = ["JsonlFormatter", "close_logging", "log_event", "setup_logging"]
