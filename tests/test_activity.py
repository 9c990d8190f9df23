"""Tests for ActivityRecorder"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import pytest

from portfolio_core.activity import (
    ActivityAction,
    ActivityRecorder,
    EntityType,
    SuppressionPolicy,
    diff_changes,
    format_timestamp,
)
from portfolio_core.db.config import Settings
from portfolio_core.db.entities import FieldChange
from portfolio_core.errors import StoreUnavailable
from portfolio_core.observability import metrics


FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9)


def fixed_clock() -> datetime:
    return FIXED_NOW


class TestFormatting:
    """Tests for timestamp rendering and change diffs"""

    def test_format_timestamp(self):
        """Date and time in en-US short style"""
        assert format_timestamp(FIXED_NOW) == ("Mar 5, 2024", "02:07:09 PM")

    def test_format_timestamp_morning(self):
        assert format_timestamp(datetime(2023, 12, 25, 0, 30, 0)) == ("Dec 25, 2023", "12:30:00 AM")

    def test_diff_changes(self):
        """Only changed fields are listed, values rendered as strings"""
        changes = diff_changes(
            {"title": "Old", "published": False, "slug": "same"},
            {"title": "New", "published": True, "slug": "same"},
        )
        assert changes == [
            FieldChange("title", "Old", "New"),
            FieldChange("published", "False", "True"),
        ]

    def test_diff_changes_restricted_fields(self):
        changes = diff_changes({"a": 1, "b": None}, {"a": 2, "b": "x"}, fields=["b"])
        assert changes == [FieldChange("b", None, "x")]


class TestSuppressionPolicy:
    """Tests for write-time suppression"""

    def test_admin_view_suppressed(self):
        policy = SuppressionPolicy()
        assert policy.suppresses(ActivityAction.VIEW, "admin", "/blog/post") is True

    def test_admin_path_view_suppressed(self):
        """Views of admin pages are dropped whoever the actor is"""
        policy = SuppressionPolicy()
        assert policy.suppresses(ActivityAction.VIEW, "Visitor", "/Admin/dashboard") is True

    def test_other_actions_kept(self):
        policy = SuppressionPolicy()
        assert policy.suppresses(ActivityAction.UPDATE, "admin", "/admin/projects") is False

    def test_visitor_view_kept(self):
        policy = SuppressionPolicy()
        assert policy.suppresses(ActivityAction.VIEW, "Visitor", "/blog") is False
        assert policy.suppresses(ActivityAction.VIEW, None, None) is False

    def test_from_settings(self):
        """Sentinel and prefix come from settings"""
        policy = SuppressionPolicy.from_settings(
            Settings(admin_user="root", admin_path_prefix="")
        )
        assert policy.suppresses(ActivityAction.VIEW, "root") is True
        assert policy.suppresses(ActivityAction.VIEW, "admin") is False
        assert policy.suppresses(ActivityAction.VIEW, "x", "/admin/") is False


class TestActivityRecorder:
    """Tests for ActivityRecorder.record"""

    @pytest.mark.asyncio
    async def test_record_persists(self, uow):
        """A normal record is stored with formatted description"""
        item_id = uuid4()
        recorder = ActivityRecorder(uow, clock=fixed_clock)

        record = await recorder.record(
            "project", "Portfolio", "update", "Updated project",
            path="/projects/portfolio", item_id=item_id,
            changes=[FieldChange("title", "Old", "Portfolio")],
        )

        assert record is not None
        assert record.description == "Updated project on Mar 5, 2024 at 02:07:09 PM"
        assert record.detailed_time == "02:07:09 PM"
        assert record.timestamp == FIXED_NOW
        assert record.user == "System"
        assert record.item_id == str(item_id)
        assert record.changes == (FieldChange("title", "Old", "Portfolio"),)

        stored = await uow.activities.get(record.id)
        assert stored == record
        assert metrics.activity_count == 1

    @pytest.mark.asyncio
    async def test_accepts_enum_members(self, uow):
        record = await ActivityRecorder(uow).record(
            EntityType.BLOG, "Hello", ActivityAction.CREATE, "Created post", user="Alice"
        )
        assert record.entity_type == "blog"
        assert record.action == "create"
        assert record.user == "Alice"

    @pytest.mark.asyncio
    async def test_default_user_configurable(self, uow):
        record = await ActivityRecorder(uow, default_user="Visitor").record(
            "blog", "Hello", "view", "Viewed post"
        )
        assert record.user == "Visitor"

    @pytest.mark.asyncio
    async def test_admin_view_never_persisted(self, uow):
        """view by the admin sentinel returns None and writes nothing"""
        record = await ActivityRecorder(uow).record(
            "blog", "Hello", "view", "Viewed post", path="/blog/hello", user="admin"
        )
        assert record is None
        assert await uow.activities.count() == 0
        assert metrics.suppressed_count == 1

    @pytest.mark.asyncio
    async def test_admin_update_persisted(self, uow):
        """Suppression only applies to views"""
        record = await ActivityRecorder(uow).record(
            "project", "Portfolio", "update", "Updated", user="admin"
        )
        assert record is not None
        assert await uow.activities.count() == 1

    @pytest.mark.asyncio
    async def test_store_failure_returns_none(self, uow, monkeypatch):
        """Write failures are logged and swallowed"""
        async def broken_create(entity):
            raise StoreUnavailable("connection refused")

        monkeypatch.setattr(uow.activities, "create", broken_create)

        record = await ActivityRecorder(uow).record("skill", "Python", "create", "Created skill")

        assert record is None
        assert metrics.error_count == 1
        assert metrics.activity_count == 0

    @pytest.mark.asyncio
    async def test_unexpected_failure_returns_none(self, uow, monkeypatch):
        async def broken_create(entity):
            raise RuntimeError("boom")

        monkeypatch.setattr(uow.activities, "create", broken_create)

        assert await ActivityRecorder(uow).record("skill", "Python", "create", "x") is None

    @pytest.mark.asyncio
    async def test_unknown_enum_value_returns_none(self, uow):
        """Invalid type or action is not written and not raised"""
        recorder = ActivityRecorder(uow)
        assert await recorder.record("widget", "X", "create", "x") is None
        assert await recorder.record("blog", "X", "publish", "x") is None
        assert await uow.activities.count() == 0
