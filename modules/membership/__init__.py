"""Membership module.

Makes users join a configured channel before using the bot. Verdicts are
cached; lookup failures let the user through.
"""

from .handlers import setup

__all__ = ['setup']
