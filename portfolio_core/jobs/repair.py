"""Relation repair job - Heal asymmetric back-references left by failed reconciles"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from uuid import UUID

from ..db.repositories.base import UnitOfWork
from ..observability import logger, track_errors, track_latency
from ..relations import RELATIONS, Relation


@dataclass
class RepairStats:
    relation: str
    scanned_owners: int = 0
    scanned_targets: int = 0
    added: int = 0
    removed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


async def repair_relation(uow: UnitOfWork, relation: Relation) -> RepairStats:
    """
    Make back-references match the owners' reference fields.

    The owner field is the source of truth:
    - a target listed by an owner but missing the owner in its
      back-reference gets the owner added
    - a target whose back-reference names an owner that is gone, or that
      no longer lists the target, gets that owner pulled

    Owner fields themselves are never modified.

    Args:
        uow: Unit of work
        relation: Relation seen from its owning side

    Returns:
        RepairStats with counts of scanned documents and fixed entries
    """
    owners = await uow.relations.scan_refs(relation.owner_collection, relation.owner_field)
    targets = await uow.relations.scan_refs(relation.backref_collection, relation.backref_field)

    stats = RepairStats(
        relation=relation.name,
        scanned_owners=len(owners),
        scanned_targets=len(targets),
    )

    # Expected back-references derived from the owning side
    expected: dict[UUID, set[UUID]] = {target_id: set() for target_id in targets}
    for owner_id, target_ids in owners.items():
        for target_id in target_ids:
            if target_id in expected:
                expected[target_id].add(owner_id)

    for target_id, backrefs in targets.items():
        actual = set(backrefs)
        for owner_id in expected[target_id] - actual:
            stats.added += await uow.relations.add_ref(
                relation.backref_collection, [target_id], relation.backref_field, owner_id
            )
        for owner_id in actual - expected[target_id]:
            stats.removed += await uow.relations.pull_ref(
                relation.backref_collection, [target_id], relation.backref_field, owner_id
            )

    if stats.added or stats.removed:
        logger.warning(
            f"Repaired {relation.name}: +{stats.added} -{stats.removed} back-reference(s)"
        )
    return stats


@track_errors
@track_latency("repair")
async def run_relation_repair(uow: UnitOfWork) -> list[RepairStats]:
    """Repair every registered relation"""
    results = []
    for relation in RELATIONS:
        results.append(await repair_relation(uow, relation))
    return results
