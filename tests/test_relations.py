"""Tests for RelationSync"""

from __future__ import annotations

from uuid import uuid4

import pytest

from portfolio_core.db.entities import ProjectEntity
from portfolio_core.errors import (
    EntityNotFound,
    ReferenceNotFound,
    RelationStoreUnavailable,
    StoreUnavailable,
)
from portfolio_core.observability import metrics
from portfolio_core.relations import (
    POST_TAGS,
    PROJECT_SKILLS,
    Relation,
    RelationSync,
    plan_reconcile,
    unique_ids,
)


async def _skill_projects(uow, skill):
    return await uow.relations.get_refs("skill", skill.id, "project_ids")


async def _project_skills(uow, project):
    return await uow.relations.get_refs("project", project.id, "skill_ids")


class TestPlan:
    """Tests for the pure diff helpers"""

    def test_unique_ids_keeps_first_occurrence(self):
        """Duplicates collapse and order follows first occurrence"""
        a, b, c = uuid4(), uuid4(), uuid4()
        assert unique_ids([b, a, b, c, a]) == [b, a, c]

    def test_plan_reconcile(self):
        """Removed and added are set differences in input order"""
        s1, s2, s3 = uuid4(), uuid4(), uuid4()
        removed, added = plan_reconcile([s1, s2], [s2, s3])
        assert removed == [s1]
        assert added == [s3]

    def test_plan_reconcile_empty_desired(self):
        """Empty desired list removes everything"""
        s1, s2 = uuid4(), uuid4()
        removed, added = plan_reconcile([s1, s2], [])
        assert removed == [s1, s2]
        assert added == []


class TestRelation:
    """Tests for relation descriptors"""

    def test_inverse_swaps_sides(self):
        """Inverse of Project->Skill is Skill->Project"""
        inverse = PROJECT_SKILLS.inverse()
        assert inverse.owner_collection == "skill"
        assert inverse.owner_field == "project_ids"
        assert inverse.backref_collection == "project"
        assert inverse.backref_field == "skill_ids"
        assert inverse.inverse() == PROJECT_SKILLS

    def test_rejects_unknown_field(self):
        """Fields outside the registry are refused"""
        with pytest.raises(ValueError):
            Relation("project", "title", "skill", "project_ids")


class TestReconcile:
    """Tests for RelationSync.reconcile"""

    @pytest.mark.asyncio
    async def test_swap_scenario(self, uow, project, skills):
        """P1 [S1, S2] -> [S2, S3] updates all three skills"""
        s1, s2, s3 = skills
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, [], [s1.id, s2.id])
        assert await _skill_projects(uow, s1) == [project.id]
        assert await _skill_projects(uow, s2) == [project.id]

        result = await sync.reconcile(project.id, PROJECT_SKILLS, [s1.id, s2.id], [s2.id, s3.id])

        assert result == [s2.id, s3.id]
        assert await _skill_projects(uow, s1) == []
        assert await _skill_projects(uow, s2) == [project.id]
        assert await _skill_projects(uow, s3) == [project.id]
        assert await _project_skills(uow, project) == [s2.id, s3.id]

    @pytest.mark.asyncio
    async def test_fresh_read_when_previous_omitted(self, uow, project, skills):
        """previous_ids=None reads the owner's current list"""
        s1, s2, _ = skills
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s1.id])
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s2.id])

        assert await _skill_projects(uow, s1) == []
        assert await _skill_projects(uow, s2) == [project.id]

    @pytest.mark.asyncio
    async def test_idempotent(self, uow, project, skills):
        """Reconciling twice gives the same state as once"""
        s1, s2, _ = skills
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s1.id, s2.id])
        first = (
            await _project_skills(uow, project),
            await _skill_projects(uow, s1),
            await _skill_projects(uow, s2),
        )
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s1.id, s2.id])
        second = (
            await _project_skills(uow, project),
            await _skill_projects(uow, s1),
            await _skill_projects(uow, s2),
        )
        assert first == second

    @pytest.mark.asyncio
    async def test_duplicates_collapse(self, uow, project, skills):
        """[S1, S1, S2] stores the same state as [S1, S2]"""
        s1, s2, _ = skills
        result = await RelationSync(uow).reconcile(
            project.id, PROJECT_SKILLS, [], [s1.id, s1.id, s2.id]
        )
        assert result == [s1.id, s2.id]
        assert await _project_skills(uow, project) == [s1.id, s2.id]
        assert await _skill_projects(uow, s1) == [project.id]

    @pytest.mark.asyncio
    async def test_backref_not_duplicated(self, uow, project, skills):
        """A stale previous list never pushes the owner twice"""
        s1 = skills[0]
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, [], [s1.id])
        await sync.reconcile(project.id, PROJECT_SKILLS, [], [s1.id])
        assert await _skill_projects(uow, s1) == [project.id]

    @pytest.mark.asyncio
    async def test_empty_desired_clears(self, uow, project, skills):
        """Empty desired list removes every relation"""
        s1, s2, _ = skills
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, [], [s1.id, s2.id])
        result = await sync.reconcile(project.id, PROJECT_SKILLS, None, [])

        assert result == []
        assert await _project_skills(uow, project) == []
        assert await _skill_projects(uow, s1) == []
        assert await _skill_projects(uow, s2) == []

    @pytest.mark.asyncio
    async def test_nonexistent_target_is_skipped(self, uow, project, skills):
        """Unknown target ids do not abort the owner's update"""
        s1 = skills[0]
        ghost = uuid4()
        result = await RelationSync(uow).reconcile(
            project.id, PROJECT_SKILLS, [], [s1.id, ghost]
        )
        assert result == [s1.id, ghost]
        assert await _skill_projects(uow, s1) == [project.id]
        assert await uow.relations.get_refs("skill", ghost, "project_ids") is None

    @pytest.mark.asyncio
    async def test_missing_owner(self, uow, skills):
        """Reconciling an unknown owner raises EntityNotFound"""
        with pytest.raises(EntityNotFound):
            await RelationSync(uow).reconcile(uuid4(), PROJECT_SKILLS, None, [skills[0].id])
        assert await _skill_projects(uow, skills[0]) == []

    @pytest.mark.asyncio
    async def test_inverse_relation(self, uow, project, skills):
        """Editing a skill's projects updates the project side"""
        s1 = skills[0]
        other = ProjectEntity(title="Other")
        await uow.content.create(other)

        await RelationSync(uow).reconcile(
            s1.id, PROJECT_SKILLS.inverse(), None, [project.id, other.id]
        )

        assert await _project_skills(uow, project) == [s1.id]
        assert await _project_skills(uow, other) == [s1.id]
        assert await _skill_projects(uow, s1) == [project.id, other.id]

    @pytest.mark.asyncio
    async def test_post_tags(self, uow, post, tags):
        """BlogPost/BlogTag relation behaves the same way"""
        t1, t2 = tags
        sync = RelationSync(uow)
        await sync.reconcile(post.id, POST_TAGS, None, [t1.id, t2.id])
        await sync.reconcile(post.id, POST_TAGS, None, [t2.id])

        assert await uow.relations.get_refs("blog_tag", t1.id, "post_ids") == []
        assert await uow.relations.get_refs("blog_tag", t2.id, "post_ids") == [post.id]
        assert await uow.relations.get_refs("blog_post", post.id, "tag_ids") == [t2.id]

    @pytest.mark.asyncio
    async def test_counts_reconcile(self, uow, project, skills):
        """Each reconcile is counted in metrics"""
        await RelationSync(uow).reconcile(project.id, PROJECT_SKILLS, None, [skills[0].id])
        assert metrics.reconcile_count == 1
        assert len(metrics.reconcile_latencies) == 1


class TestStoreFailure:
    """Tests for failure ordering"""

    @pytest.mark.asyncio
    async def test_owner_untouched_when_backref_write_fails(
        self, uow, project, skills, monkeypatch
    ):
        """A failure before the owner write leaves the owner's list as it was"""
        s1, s2, s3 = skills
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s1.id, s2.id])

        async def broken_add_ref(*args, **kwargs):
            raise StoreUnavailable("connection reset")

        monkeypatch.setattr(uow.relations, "add_ref", broken_add_ref)

        with pytest.raises(RelationStoreUnavailable) as exc_info:
            await sync.reconcile(project.id, PROJECT_SKILLS, None, [s2.id, s3.id])

        assert isinstance(exc_info.value, StoreUnavailable)
        assert await _project_skills(uow, project) == [s1.id, s2.id]
        # Forward-only: the pull from S1 already happened
        assert await _skill_projects(uow, s1) == []

    @pytest.mark.asyncio
    async def test_failure_counted_once(self, uow, project, skills, monkeypatch):
        """A failed reconcile adds one error to metrics"""
        async def broken_add_ref(*args, **kwargs):
            raise StoreUnavailable("connection reset")

        monkeypatch.setattr(uow.relations, "add_ref", broken_add_ref)

        with pytest.raises(RelationStoreUnavailable):
            await RelationSync(uow).link(project.id, skills[0].id, PROJECT_SKILLS)

        assert metrics.error_count == 1

    @pytest.mark.asyncio
    async def test_missing_owner_not_counted_as_error(self, uow):
        with pytest.raises(EntityNotFound):
            await RelationSync(uow).reconcile(uuid4(), PROJECT_SKILLS, None, [])
        assert metrics.error_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["link", "unlink", "detach", "require_existing"])
    async def test_first_read_failure_is_relation_error(
        self, uow, project, skills, monkeypatch, operation
    ):
        """Store failures surface as RelationStoreUnavailable from every operation"""
        async def broken_read(*args, **kwargs):
            raise StoreUnavailable("connection refused")

        monkeypatch.setattr(uow.relations, "get_refs", broken_read)
        monkeypatch.setattr(uow.relations, "existing_ids", broken_read)
        sync = RelationSync(uow)
        calls = {
            "link": lambda: sync.link(project.id, skills[0].id, PROJECT_SKILLS),
            "unlink": lambda: sync.unlink(project.id, skills[0].id, PROJECT_SKILLS),
            "detach": lambda: sync.detach(project.id, PROJECT_SKILLS),
            "require_existing": lambda: sync.require_existing([skills[0].id], PROJECT_SKILLS),
        }

        with pytest.raises(RelationStoreUnavailable):
            await calls[operation]()

    @pytest.mark.asyncio
    async def test_failure_rolls_back_unit_of_work_and_propagates(self, store, monkeypatch):
        """The unit of work re-raises after rollback"""
        project = ProjectEntity(title="P")
        async with store.unit_of_work() as uow:
            await uow.content.create(project)

        with pytest.raises(RelationStoreUnavailable):
            async with store.unit_of_work() as uow:
                async def broken_set_refs(*args, **kwargs):
                    raise StoreUnavailable("timeout")

                monkeypatch.setattr(uow.relations, "set_refs", broken_set_refs)
                await RelationSync(uow).reconcile(project.id, PROJECT_SKILLS, None, [uuid4()])


class TestSingleOperations:
    """Tests for link, unlink, detach, purge_references and require_existing"""

    @pytest.mark.asyncio
    async def test_link_and_unlink(self, uow, project, skills):
        """link adds both sides once, unlink removes both sides"""
        s1 = skills[0]
        sync = RelationSync(uow)

        assert await sync.link(project.id, s1.id, PROJECT_SKILLS) is True
        assert await sync.link(project.id, s1.id, PROJECT_SKILLS) is False
        assert await _skill_projects(uow, s1) == [project.id]

        assert await sync.unlink(project.id, s1.id, PROJECT_SKILLS) is True
        assert await sync.unlink(project.id, s1.id, PROJECT_SKILLS) is False
        assert await _skill_projects(uow, s1) == []
        assert await _project_skills(uow, project) == []

    @pytest.mark.asyncio
    async def test_detach(self, uow, project, skills):
        """detach clears the owner and every back-reference"""
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s.id for s in skills])

        previous = await sync.detach(project.id, PROJECT_SKILLS)

        assert previous == [s.id for s in skills]
        assert await _project_skills(uow, project) == []
        for skill in skills:
            assert await _skill_projects(uow, skill) == []

    @pytest.mark.asyncio
    async def test_purge_references(self, uow, project, skills):
        """Purging a skill removes it from every project"""
        s1, s2, _ = skills
        other = ProjectEntity(title="Other")
        await uow.content.create(other)
        sync = RelationSync(uow)
        await sync.reconcile(project.id, PROJECT_SKILLS, None, [s1.id, s2.id])
        await sync.reconcile(other.id, PROJECT_SKILLS, None, [s1.id])

        changed = await sync.purge_references(s1.id, PROJECT_SKILLS)

        assert changed == 2
        assert await _project_skills(uow, project) == [s2.id]
        assert await _project_skills(uow, other) == []
        assert await _skill_projects(uow, s1) == []

    @pytest.mark.asyncio
    async def test_require_existing(self, uow, skills):
        """Missing ids are reported, existing ids pass"""
        sync = RelationSync(uow)
        await sync.require_existing([s.id for s in skills], PROJECT_SKILLS)

        ghost = uuid4()
        with pytest.raises(ReferenceNotFound) as exc_info:
            await sync.require_existing([skills[0].id, ghost], PROJECT_SKILLS)
        assert exc_info.value.missing == [ghost]
