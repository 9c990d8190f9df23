"""Activity recorder - Append immutable audit records for content mutations"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from .db.config import Settings
from .db.entities import ActivityEntity, FieldChange, _utcnow
from .db.repositories.base import UnitOfWork
from .observability import logger, metrics, track_errors


class EntityType(str, Enum):
    BLOG = "blog"
    PROJECT = "project"
    SKILL = "skill"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    PROFILE = "profile"
    CONTACT = "contact"
    SYSTEM = "system"


class ActivityAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"
    REPLY = "reply"
    MARK_READ = "mark_read"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class SuppressionPolicy:
    """
    Decide which activities are dropped at write time.

    A view by the administrative actor is never persisted, and neither is
    a view of a page under the admin path prefix.
    """
    admin_user: str = "admin"
    admin_path_prefix: Optional[str] = "/admin/"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SuppressionPolicy":
        return cls(
            admin_user=settings.admin_user,
            admin_path_prefix=settings.admin_path_prefix or None,
        )

    def suppresses(
        self,
        action: ActivityAction,
        user: Optional[str] = None,
        path: Optional[str] = None,
    ) -> bool:
        if action != ActivityAction.VIEW:
            return False
        if user is not None and user == self.admin_user:
            return True
        if path and self.admin_path_prefix:
            return self.admin_path_prefix.lower() in path.lower()
        return False


def format_timestamp(ts: datetime) -> tuple[str, str]:
    """Render (date, time) as e.g. ("Mar 5, 2024", "02:07:09 PM")"""
    return f"{ts:%b} {ts.day}, {ts.year}", ts.strftime("%I:%M:%S %p")


def _render(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return str(value)


def diff_changes(
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    fields: Optional[Iterable[str]] = None,
) -> list[FieldChange]:
    """
    Build the change list between two versions of a document.

    Args:
        before: Old field values
        after: New field values
        fields: Fields to compare, defaults to every key of `after`

    Returns:
        One FieldChange per field whose value differs, in field order
    """
    if fields is None:
        fields = after.keys()

    changes = []
    for name in fields:
        old, new = before.get(name), after.get(name)
        if old != new:
            changes.append(FieldChange(field=name, old_value=_render(old), new_value=_render(new)))
    return changes


class ActivityRecorder:
    """
    Best-effort audit writer.

    record() never raises: a failed write is logged and counted, and the
    business mutation that triggered it carries on.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        policy: Optional[SuppressionPolicy] = None,
        default_user: str = "System",
        clock=_utcnow,
    ):
        self.uow = uow
        self.policy = policy or SuppressionPolicy()
        self.default_user = default_user
        self.clock = clock

    async def record(
        self,
        entity_type: str,
        title: str,
        action: str,
        details: str,
        path: Optional[str] = None,
        user: Optional[str] = None,
        item_id: Optional[Any] = None,
        changes: Optional[Sequence[FieldChange]] = None,
    ) -> Optional[ActivityEntity]:
        """
        Persist one activity record.

        Returns:
            The stored record, or None when suppressed or when the write failed
        """
        try:
            entity_type = EntityType(entity_type)
            action = ActivityAction(action)
        except ValueError as e:
            logger.warning(f"Activity not recorded: {e}")
            return None

        if self.policy.suppresses(action, user, path):
            metrics.increment("suppressed_count")
            logger.debug(f"Suppressed {action.value} of {path or title} by {user}")
            return None

        now = self.clock()
        date_part, time_part = format_timestamp(now)
        record = ActivityEntity(
            entity_type=entity_type.value,
            title=title,
            action=action.value,
            description=f"{details} on {date_part} at {time_part}",
            timestamp=now,
            detailed_time=time_part,
            details=details,
            path=path,
            user=user or self.default_user,
            item_id=str(item_id) if item_id is not None else None,
            changes=tuple(changes or ()),
        )

        try:
            await self._write(record)
        except Exception:
            # Logged and counted by _write
            return None

        metrics.increment("activity_count")
        return record

    @track_errors
    async def _write(self, record: ActivityEntity) -> None:
        await self.uow.activities.create(record)
