"""Common module: /start and /help."""

from .handlers import setup

__all__ = ['setup']
