"""SQLAlchemy models for the portfolio core"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PgUUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid_array():
    return ARRAY(PgUUID(as_uuid=True))


class Base(DeclarativeBase):
    """Base class for all models"""
    pass


class Project(Base):
    """Portfolio projects; skill_ids owns the Project<->Skill relation"""
    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(PgUUID(as_uuid=True), primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    slug: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    skill_ids: Mapped[list[UUID]] = mapped_column(
        _uuid_array(), nullable=False, default=list, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_projects_skill_ids", skill_ids, postgresql_using="gin"),
    )


class Skill(Base):
    """Skills; project_ids is the back-reference"""
    __tablename__ = "skills"

    id: Mapped[UUID] = mapped_column(PgUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    proficiency: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    project_ids: Mapped[list[UUID]] = mapped_column(
        _uuid_array(), nullable=False, default=list, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_skills_project_ids", project_ids, postgresql_using="gin"),
    )


class BlogPost(Base):
    """Blog posts; tag_ids owns the BlogPost<->BlogTag relation"""
    __tablename__ = "blog_posts"

    id: Mapped[UUID] = mapped_column(PgUUID(as_uuid=True), primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    slug: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tag_ids: Mapped[list[UUID]] = mapped_column(
        _uuid_array(), nullable=False, default=list, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_blog_posts_tag_ids", tag_ids, postgresql_using="gin"),
    )


class BlogTag(Base):
    """Blog tags; post_ids is the back-reference"""
    __tablename__ = "blog_tags"

    id: Mapped[UUID] = mapped_column(PgUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    slug: Mapped[str] = mapped_column(Text, nullable=False, default="")
    post_ids: Mapped[list[UUID]] = mapped_column(
        _uuid_array(), nullable=False, default=list, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_blog_tags_post_ids", post_ids, postgresql_using="gin"),
    )


class Activity(Base):
    """Append-only audit trail of content mutations"""
    __tablename__ = "activities"

    id: Mapped[UUID] = mapped_column(PgUUID(as_uuid=True), primary_key=True, default=uuid4)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    detailed_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user: Mapped[str] = mapped_column(Text, nullable=False, default="System")
    item_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changes: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    __table_args__ = (
        Index("idx_activities_timestamp", timestamp.desc()),
        Index("idx_activities_item_id", item_id),
        Index("idx_activities_entity_type", entity_type),
    )


class PageView(Base):
    """Per-path view counters"""
    __tablename__ = "page_views"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


MODELS_BY_COLLECTION = {
    "project": Project,
    "skill": Skill,
    "blog_post": BlogPost,
    "blog_tag": BlogTag,
}
