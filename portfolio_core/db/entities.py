"""Domain entities - backend-agnostic data models"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    """Return current UTC time as naive datetime (for DB compatibility)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============ Related content ============

@dataclass
class ProjectEntity:
    """Portfolio project; skill_ids is the owning side of Project<->Skill"""
    id: UUID = field(default_factory=uuid4)
    title: str = ""
    slug: str = ""
    description: str = ""
    skill_ids: list[UUID] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def label(self) -> str:
        return self.title


@dataclass
class SkillEntity:
    """Skill; project_ids is the back-reference of Project.skill_ids"""
    id: UUID = field(default_factory=uuid4)
    name: str = ""
    proficiency: int = 0
    project_ids: list[UUID] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def label(self) -> str:
        return self.name


@dataclass
class BlogPostEntity:
    """Blog post; tag_ids is the owning side of BlogPost<->BlogTag"""
    id: UUID = field(default_factory=uuid4)
    title: str = ""
    slug: str = ""
    published: bool = False
    tag_ids: list[UUID] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def label(self) -> str:
        return self.title


@dataclass
class BlogTagEntity:
    """Blog tag; post_ids is the back-reference of BlogPost.tag_ids"""
    id: UUID = field(default_factory=uuid4)
    name: str = ""
    slug: str = ""
    post_ids: list[UUID] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def label(self) -> str:
        return self.name


# ============ Activity log ============

@dataclass(frozen=True)
class FieldChange:
    """One field of a before/after diff"""
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None


@dataclass(frozen=True)
class ActivityEntity:
    """Immutable audit record. Never updated once written."""
    id: UUID = field(default_factory=uuid4)
    entity_type: str = "system"
    title: str = ""
    action: str = "update"
    description: str = ""
    timestamp: datetime = field(default_factory=_utcnow)
    detailed_time: Optional[str] = None
    details: Optional[str] = None
    path: Optional[str] = None
    user: str = "System"
    item_id: Optional[str] = None
    changes: tuple[FieldChange, ...] = ()


@dataclass
class ActivityPage:
    """Paginated admin listing envelope"""
    records: list[ActivityEntity]
    total: int
    page: int
    page_size: int
    total_pages: int


@dataclass
class ActivityStatistics:
    """Rollup counts; windows are relative to the call time"""
    total: int = 0
    last_24h: int = 0
    last_7d: int = 0
    last_30d: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_action: dict[str, int] = field(default_factory=dict)


# ============ Page views ============

@dataclass
class PageViewEntity:
    """Per-path hit counter, keyed by the lowercased path"""
    path: str
    count: int = 0
    last_updated: datetime = field(default_factory=_utcnow)


def changes_to_dicts(changes) -> list[dict]:
    """Serialize FieldChange values for document storage"""
    return [
        {"field": c.field, "old_value": c.old_value, "new_value": c.new_value}
        for c in changes or ()
    ]


def changes_from_dicts(raw) -> tuple[FieldChange, ...]:
    """Parse stored change triples, tolerating missing keys"""
    if not raw:
        return ()
    return tuple(
        FieldChange(
            field=c.get("field", ""),
            old_value=c.get("old_value"),
            new_value=c.get("new_value"),
        )
        for c in raw
    )
