"""
Migration engine: conversation matching, identity resolution, message
routing and propagation of quotes, attachments, reactions and mentions.
"""

from deskport.migration.driver import MigrationDriver
from deskport.migration.results import RunSummary, Unit, UnitResult

__all__ = ["MigrationDriver", "RunSummary", "Unit", "UnitResult"]
