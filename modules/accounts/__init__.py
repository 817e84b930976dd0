"""Accounts module.

Features:
- Known users registry (filled by UserTrackingMiddleware)
- Daily download quota (/myaccount)
- Favorites, at most MAX_FAVORITES per user (/favorites, FAV: button)
"""

from .handlers import setup

__all__ = ['setup']
