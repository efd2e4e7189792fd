"""
Quarry - persistence layer: connections, query builder, migrations,
seeders and eager-loaded relations.
"""

__version__ = "0.1.0"

from quarry.core import *  # noqa
