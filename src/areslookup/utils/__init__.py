"""Helpers shared across ``areslookup``."""

from .logging_setup import setup_logger

__all__ = ["setup_logger"]
