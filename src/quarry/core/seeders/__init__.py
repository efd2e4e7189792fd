"""Database seeders: run ``seed(db)`` scripts in filename order.

Tags:
    quarry, seeders, fixtures, database
"""

from quarry.core.seeders.runner import SeederRunner

__all__ = ["SeederRunner"]
