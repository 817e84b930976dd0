"""Catalog module.

Features:
- Admin uploads with Save/Cancel review (pending uploads expire)
- Keyword search (all words must match) with pagination
- Recent and trending lists
- Quota-limited file delivery with auto-delete
"""

from .handlers import setup

__all__ = ['setup']
