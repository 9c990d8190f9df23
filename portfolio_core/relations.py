"""Relation sync - Keep symmetric many-to-many back-references consistent"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable, Iterable, Optional, Sequence
from uuid import UUID

from .db.collections import check_ref_field
from .db.repositories.base import UnitOfWork
from .errors import (
    EntityNotFound,
    ReferenceNotFound,
    RelationStoreUnavailable,
    StoreUnavailable,
)
from .observability import logger, track_errors, track_latency


@dataclass(frozen=True)
class Relation:
    """
    One side of a symmetric relation.

    The owner's `owner_field` lists target ids; each target lists the
    owner back in `backref_field`.
    """
    owner_collection: str
    owner_field: str
    backref_collection: str
    backref_field: str

    def __post_init__(self):
        check_ref_field(self.owner_collection, self.owner_field)
        check_ref_field(self.backref_collection, self.backref_field)

    def inverse(self) -> "Relation":
        """Same relation seen from the back-reference side"""
        return Relation(
            owner_collection=self.backref_collection,
            owner_field=self.backref_field,
            backref_collection=self.owner_collection,
            backref_field=self.owner_field,
        )

    @property
    def name(self) -> str:
        return f"{self.owner_collection}.{self.owner_field}"


PROJECT_SKILLS = Relation("project", "skill_ids", "skill", "project_ids")
POST_TAGS = Relation("blog_post", "tag_ids", "blog_tag", "post_ids")

# Owning sides; the repair job treats these fields as the source of truth
RELATIONS: tuple[Relation, ...] = (PROJECT_SKILLS, POST_TAGS)


def unique_ids(ids: Iterable[UUID]) -> list[UUID]:
    """Drop duplicate ids, first occurrence keeps its position"""
    return list(dict.fromkeys(ids))


def plan_reconcile(
    previous_ids: Sequence[UUID],
    desired_ids: Sequence[UUID],
) -> tuple[list[UUID], list[UUID]]:
    """
    Compute (removed, added) between two reference lists.

    Both lists are treated as sets; the results keep input order.
    """
    previous = unique_ids(previous_ids)
    desired = unique_ids(desired_ids)
    desired_set = set(desired)
    previous_set = set(previous)
    removed = [i for i in previous if i not in desired_set]
    added = [i for i in desired if i not in previous_set]
    return removed, added


def relation_errors(func: Callable):
    """Re-raise store failures as RelationStoreUnavailable"""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except RelationStoreUnavailable:
            raise
        except StoreUnavailable as e:
            raise RelationStoreUnavailable(str(e)) from e

    return wrapper


class RelationSync:
    """
    Reconcile reference lists on both sides of a relation.

    Back-references are written before the owner's own field, so a store
    failure part-way through leaves the owner pointing at its previous
    targets. The caller must serialize concurrent edits of one owner.

    Every public method raises RelationStoreUnavailable when the store
    fails, including on its first read.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def _owner_refs(self, entity_id: UUID, relation: Relation) -> list[UUID]:
        refs = await self.uow.relations.get_refs(
            relation.owner_collection, entity_id, relation.owner_field
        )
        if refs is None:
            raise EntityNotFound(relation.owner_collection, entity_id)
        return refs

    @track_errors
    @track_latency("reconcile")
    @relation_errors
    async def reconcile(
        self,
        entity_id: UUID,
        relation: Relation,
        previous_ids: Optional[Sequence[UUID]],
        desired_ids: Sequence[UUID],
    ) -> list[UUID]:
        """
        Move the owner's references from previous_ids to desired_ids.

        Args:
            entity_id: Owner entity
            relation: Which relation, seen from the owner
            previous_ids: What the owner pointed at, None to read it fresh
            desired_ids: What the owner should point at

        Returns:
            The de-duplicated desired list now stored on the owner

        Raises:
            EntityNotFound: Owner does not exist
            RelationStoreUnavailable: Store failed mid-way
        """
        current = await self._owner_refs(entity_id, relation)
        if previous_ids is None:
            previous_ids = current

        desired = unique_ids(desired_ids)
        removed, added = plan_reconcile(previous_ids, desired)

        if removed:
            await self.uow.relations.pull_ref(
                relation.backref_collection, removed, relation.backref_field, entity_id
            )
        if added:
            # Targets that do not exist simply match nothing
            await self.uow.relations.add_ref(
                relation.backref_collection, added, relation.backref_field, entity_id
            )

        found = await self.uow.relations.set_refs(
            relation.owner_collection, entity_id, relation.owner_field, desired
        )
        if not found:
            raise EntityNotFound(relation.owner_collection, entity_id)

        logger.debug(
            f"Reconciled {relation.name} {entity_id}: "
            f"-{len(removed)} +{len(added)}"
        )
        return desired

    @relation_errors
    async def link(self, owner_id: UUID, target_id: UUID, relation: Relation) -> bool:
        """Add a single owner/target pair on both sides. Returns False if already linked."""
        current = await self._owner_refs(owner_id, relation)
        if target_id in current:
            return False
        await self.reconcile(owner_id, relation, current, [*current, target_id])
        return True

    @relation_errors
    async def unlink(self, owner_id: UUID, target_id: UUID, relation: Relation) -> bool:
        """Remove a single owner/target pair on both sides. Returns False if not linked."""
        current = await self._owner_refs(owner_id, relation)
        if target_id not in current:
            return False
        await self.reconcile(
            owner_id, relation, current, [i for i in current if i != target_id]
        )
        return True

    @relation_errors
    async def detach(self, entity_id: UUID, relation: Relation) -> list[UUID]:
        """Remove the owner from every target and clear its own field. Call before deleting an owner."""
        current = await self._owner_refs(entity_id, relation)
        await self.reconcile(entity_id, relation, current, [])
        return current

    @track_errors
    @relation_errors
    async def purge_references(self, target_id: UUID, relation: Relation) -> int:
        """
        Remove a target id from every owner that lists it.

        Also clears the target's own back-reference field when the target
        still exists. Call before deleting a target.

        Returns:
            Number of owners changed
        """
        changed = await self.uow.relations.pull_ref_everywhere(
            relation.owner_collection, relation.owner_field, target_id
        )
        await self.uow.relations.set_refs(
            relation.backref_collection, target_id, relation.backref_field, []
        )

        if changed:
            logger.info(f"Purged {target_id} from {changed} {relation.owner_collection}(s)")
        return changed

    @relation_errors
    async def require_existing(self, target_ids: Iterable[UUID], relation: Relation) -> None:
        """Raise ReferenceNotFound unless every id exists in the target collection"""
        wanted = unique_ids(target_ids)
        found = await self.uow.relations.existing_ids(relation.backref_collection, wanted)
        missing = [i for i in wanted if i not in found]
        if missing:
            raise ReferenceNotFound(relation.backref_collection, missing)
