"""
SQL helpers shared by the record mapper: SQLAlchemy Core statement builders
that bind every value with an explicit type, and log payload sanitizing.
"""

from . import statements  # re-export to make the builders discoverable.
