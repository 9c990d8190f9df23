"""FastAPI endpoints for the portfolio core"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .activity import ActivityAction, ActivityRecorder, EntityType, SuppressionPolicy
from .activity_query import ActivityQueryEngine
from .db.config import Settings, get_settings
from .db.entities import FieldChange
from .db.repositories.base import Store
from .db.repositories.factory import create_store
from .errors import EntityNotFound, StoreUnavailable, ValidationError
from .jobs import run_relation_repair
from .observability import get_health_status, logger, metrics, setup_logging
from .page_views import ViewCounter
from .relations import POST_TAGS, PROJECT_SKILLS, Relation, RelationSync


# ============ Lifecycle ============

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)

    store = create_store(settings)
    await store.init()
    app.state.store = store
    logger.info(f"Store ready (backend={store.backend})")
    try:
        yield
    finally:
        await store.close()


app = FastAPI(
    title="Portfolio Core API",
    description="Relationship integrity, activity audit and page views for the portfolio CMS",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(request: Request) -> Store:
    """Store handle created in the lifespan"""
    return request.app.state.store


def get_policy(settings: Settings = Depends(get_settings)) -> SuppressionPolicy:
    return SuppressionPolicy.from_settings(settings)


# ============ Error mapping ============

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(EntityNotFound)
async def not_found_handler(request: Request, exc: EntityNotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.warning(f"Store unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "Service temporarily unavailable, please try again"},
    )


# ============ Schemas ============

class FieldChangeModel(BaseModel):
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None

    class Config:
        from_attributes = True


class ActivityOut(BaseModel):
    id: UUID
    entity_type: str
    title: str
    action: str
    description: str
    timestamp: datetime
    detailed_time: Optional[str]
    details: Optional[str]
    path: Optional[str]
    user: str
    item_id: Optional[str]
    changes: list[FieldChangeModel]

    class Config:
        from_attributes = True


class ActivityPageOut(BaseModel):
    records: list[ActivityOut]
    total: int
    page: int
    page_size: int
    total_pages: int

    class Config:
        from_attributes = True


class ActivityStatsOut(BaseModel):
    total: int
    last_24h: int
    last_7d: int
    last_30d: int
    by_type: dict[str, int]
    by_action: dict[str, int]

    class Config:
        from_attributes = True


class ActivityIn(BaseModel):
    entity_type: EntityType = Field(alias="type")
    title: str
    action: ActivityAction
    details: str = ""
    path: Optional[str] = None
    user: Optional[str] = None
    item_id: Optional[str] = None
    changes: list[FieldChangeModel] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class PageViewIn(BaseModel):
    path: str


class PageViewOut(BaseModel):
    count: int
    path: str


class PageViewIncrementOut(PageViewOut):
    success: bool = True


class RelationUpdate(BaseModel):
    ids: list[UUID]
    user: Optional[str] = None


class RelationUpdateOut(BaseModel):
    id: UUID
    ids: list[UUID]
    activity_id: Optional[UUID] = None


# ============ Activities ============

@app.get("/activities", response_model=list[ActivityOut])
async def recent_activities_endpoint(
    limit: int = 10,
    include_page_views: bool = False,
    store: Store = Depends(get_store),
):
    """Recent activity feed, page views excluded by default"""
    async with store.unit_of_work() as uow:
        return await ActivityQueryEngine(uow).recent_activities(
            limit=limit, include_views=include_page_views
        )


@app.get("/activities/admin", response_model=ActivityPageOut)
async def admin_activities_endpoint(
    page: int = 1,
    page_size: int = 50,
    type_filter: Optional[str] = Query(None, alias="type"),
    store: Store = Depends(get_store),
):
    """Paginated admin listing with optional type filter"""
    async with store.unit_of_work() as uow:
        return await ActivityQueryEngine(uow).list_activities(
            page=page, page_size=page_size, type_filter=type_filter
        )


@app.get("/activities/stats", response_model=ActivityStatsOut)
async def activity_stats_endpoint(store: Store = Depends(get_store)):
    """Windowed and all-time activity counts"""
    async with store.unit_of_work() as uow:
        return await ActivityQueryEngine(uow).statistics()


@app.get("/activities/type/{entity_type}", response_model=list[ActivityOut])
async def activities_by_type_endpoint(
    entity_type: str,
    limit: int = 20,
    store: Store = Depends(get_store),
):
    async with store.unit_of_work() as uow:
        return await ActivityQueryEngine(uow).activities_by_type(entity_type, limit=limit)


@app.get("/activities/item/{item_id}", response_model=list[ActivityOut])
async def activities_by_item_endpoint(
    item_id: str,
    limit: int = 20,
    store: Store = Depends(get_store),
):
    async with store.unit_of_work() as uow:
        return await ActivityQueryEngine(uow).activities_by_item(item_id, limit=limit)


@app.post("/activities", response_model=ActivityOut, status_code=201)
async def record_activity_endpoint(
    request: ActivityIn,
    store: Store = Depends(get_store),
    policy: SuppressionPolicy = Depends(get_policy),
    settings: Settings = Depends(get_settings),
):
    """Record an activity; admin views are acknowledged but not stored"""
    changes = [FieldChange(**c.model_dump()) for c in request.changes]
    async with store.unit_of_work() as uow:
        recorder = ActivityRecorder(uow, policy, default_user=settings.default_user)
        record = await recorder.record(
            request.entity_type,
            request.title,
            request.action,
            request.details,
            path=request.path,
            user=request.user,
            item_id=request.item_id,
            changes=changes,
        )

    if record is None:
        if policy.suppresses(request.action, request.user, request.path):
            return JSONResponse(
                status_code=200,
                content={"skipped": True, "message": "Admin page views are not tracked"},
            )
        raise HTTPException(status_code=500, detail="Failed to create activity")
    return record


# ============ Page views ============

@app.post("/page-views", response_model=PageViewIncrementOut)
async def increment_page_view_endpoint(
    request: PageViewIn,
    store: Store = Depends(get_store),
):
    """Count one view of a path"""
    async with store.unit_of_work() as uow:
        counter = ViewCounter(uow)
        count = await counter.increment(request.path)
    return PageViewIncrementOut(count=count, path=request.path)


@app.get("/page-views", response_model=PageViewOut)
async def get_page_view_endpoint(path: str, store: Store = Depends(get_store)):
    """Current count for a path, read-only"""
    async with store.unit_of_work() as uow:
        count = await ViewCounter(uow).peek(path)
    return PageViewOut(count=count, path=path)


# ============ Relations ============

# Activity entity type of each owning collection
ACTIVITY_TYPES = {
    "project": EntityType.PROJECT,
    "skill": EntityType.SKILL,
    "blog_post": EntityType.BLOG,
}


async def _update_relation(
    store: Store,
    entity_id: UUID,
    relation: Relation,
    request: RelationUpdate,
    policy: SuppressionPolicy,
    settings: Settings,
) -> RelationUpdateOut:
    async with store.unit_of_work() as uow:
        owner = await uow.content.get(relation.owner_collection, entity_id)
        if owner is None:
            raise EntityNotFound(relation.owner_collection, entity_id)

        previous = list(getattr(owner, relation.owner_field))
        confirmed = await RelationSync(uow).reconcile(
            entity_id, relation, previous, request.ids
        )

        target = relation.backref_collection.replace("_", " ")
        recorder = ActivityRecorder(uow, policy, default_user=settings.default_user)
        record = await recorder.record(
            ACTIVITY_TYPES[relation.owner_collection],
            owner.label,
            ActivityAction.UPDATE,
            f"Updated {target}s of '{owner.label}'",
            user=request.user,
            item_id=entity_id,
            changes=[
                FieldChange(
                    field=relation.owner_field,
                    old_value=", ".join(str(i) for i in previous),
                    new_value=", ".join(str(i) for i in confirmed),
                )
            ] if previous != confirmed else [],
        )

    return RelationUpdateOut(
        id=entity_id,
        ids=confirmed,
        activity_id=record.id if record else None,
    )


@app.put("/projects/{project_id}/skills", response_model=RelationUpdateOut)
async def update_project_skills(
    project_id: UUID,
    request: RelationUpdate,
    store: Store = Depends(get_store),
    policy: SuppressionPolicy = Depends(get_policy),
    settings: Settings = Depends(get_settings),
):
    """Replace a project's skills and keep Skill.project_ids in step"""
    return await _update_relation(store, project_id, PROJECT_SKILLS, request, policy, settings)


@app.put("/skills/{skill_id}/projects", response_model=RelationUpdateOut)
async def update_skill_projects(
    skill_id: UUID,
    request: RelationUpdate,
    store: Store = Depends(get_store),
    policy: SuppressionPolicy = Depends(get_policy),
    settings: Settings = Depends(get_settings),
):
    """Replace a skill's projects and keep Project.skill_ids in step"""
    return await _update_relation(
        store, skill_id, PROJECT_SKILLS.inverse(), request, policy, settings
    )


@app.put("/blog-posts/{post_id}/tags", response_model=RelationUpdateOut)
async def update_post_tags(
    post_id: UUID,
    request: RelationUpdate,
    store: Store = Depends(get_store),
    policy: SuppressionPolicy = Depends(get_policy),
    settings: Settings = Depends(get_settings),
):
    """Replace a blog post's tags and keep BlogTag.post_ids in step"""
    return await _update_relation(store, post_id, POST_TAGS, request, policy, settings)


# ============ Maintenance Jobs ============

@app.post("/jobs/repair-relations")
async def repair_relations_job(store: Store = Depends(get_store)):
    """Heal back-references that drifted from their owners"""
    async with store.unit_of_work() as uow:
        stats = await run_relation_repair(uow)
    return {"relations": [s.to_dict() for s in stats]}


# ============ Observability ============

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "version": __version__}


@app.get("/metrics")
async def metrics_endpoint():
    """Get application metrics"""
    return metrics.to_dict()


@app.post("/metrics/reset")
async def reset_metrics():
    """Reset all metrics"""
    metrics.reset()
    return {"status": "reset"}


@app.get("/health/detailed")
async def detailed_health(store: Store = Depends(get_store)):
    """Get detailed health status"""
    async with store.unit_of_work() as uow:
        status = await get_health_status(uow)
    status["backend"] = store.backend
    return status
