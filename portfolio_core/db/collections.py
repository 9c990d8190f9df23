"""Registry of the related-content collections and their reference fields.

Every backend builds table and field names from this registry only, so
names that reach a query string have always been checked here first.
"""

from __future__ import annotations

from dataclasses import dataclass

from .entities import BlogPostEntity, BlogTagEntity, ProjectEntity, SkillEntity


@dataclass(frozen=True)
class CollectionSpec:
    name: str  # SurrealDB table / memory key
    table: str  # PostgreSQL table
    entity_class: type
    ref_fields: tuple[str, ...]


COLLECTIONS: dict[str, CollectionSpec] = {
    "project": CollectionSpec("project", "projects", ProjectEntity, ("skill_ids",)),
    "skill": CollectionSpec("skill", "skills", SkillEntity, ("project_ids",)),
    "blog_post": CollectionSpec("blog_post", "blog_posts", BlogPostEntity, ("tag_ids",)),
    "blog_tag": CollectionSpec("blog_tag", "blog_tags", BlogTagEntity, ("post_ids",)),
}


def get_collection(name: str) -> CollectionSpec:
    """Look up a collection, raising ValueError for unknown names"""
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown collection: {name!r}") from None


def check_ref_field(collection: str, field: str) -> CollectionSpec:
    """Validate that `field` is a reference field of `collection`"""
    spec = get_collection(collection)
    if field not in spec.ref_fields:
        raise ValueError(f"{field!r} is not a reference field of {collection!r}")
    return spec


def collection_of(entity) -> CollectionSpec:
    """Find the collection an entity instance belongs to"""
    for spec in COLLECTIONS.values():
        if isinstance(entity, spec.entity_class):
            return spec
    raise ValueError(f"Not a related-content entity: {type(entity).__name__}")
