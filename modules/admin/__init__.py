"""Admin module.

Features:
- /stats - files, users, users active today
- /broadcast - text or copied message to every known user
- /delete - remove a file from the catalog
"""

from .handlers import setup

__all__ = ['setup']
