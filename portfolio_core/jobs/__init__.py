"""Maintenance jobs"""

from .repair import RepairStats, repair_relation, run_relation_repair

__all__ = [
    "RepairStats",
    "repair_relation",
    "run_relation_repair",
]
