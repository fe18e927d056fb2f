"""Production task endpoints: CRUD, calendar, status, assignment and rescheduling."""

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderflow.api.errors import to_http_exception
from orderflow.core.database import get_db
from orderflow.core.rate_limit import rate_limit_scheduling
from orderflow.models.assignment import TaskResourceAssignment
from orderflow.models.task import ProductionTask, TaskStatus
from orderflow.schemas.scheduling import (
    AssignmentResponse,
    AssignResourceRequest,
    AssignResourceResult,
    ConflictReport,
    ConflictResponse,
    RescheduleRequest,
    UtcDatetime,
)
from orderflow.schemas.task import (
    CalendarTask,
    RescheduleResult,
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from orderflow.services.actor import Actor
from orderflow.services.assignment_manager import AssignmentManager
from orderflow.services.conflict_detector import ConflictDetector
from orderflow.services.exceptions import (
    ConcurrencyConflictError,
    NotFoundError,
    SchedulingError,
)
from orderflow.services.rescheduler import Rescheduler
from orderflow.services.schedule_store import ScheduleStore
from orderflow.services.task_lifecycle import change_status, resolve_predecessors, status_color

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _window_filter(query, start_date: datetime | None, end_date: datetime | None):
    """Keep tasks whose planned window touches [start_date, end_date]."""
    if start_date is not None:
        query = query.where(ProductionTask.planned_end >= start_date)
    if end_date is not None:
        query = query.where(ProductionTask.planned_start <= end_date)
    return query


# ---------------------------------------------------------------
# Queries
# ---------------------------------------------------------------


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    start_date: UtcDatetime | None = Query(None),
    end_date: UtcDatetime | None = Query(None),
    status_filter: TaskStatus | None = Query(None, alias="status"),
    order_id: uuid.UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> list[ProductionTask]:
    """List tasks ordered by planned start, with window/status/order filters."""
    query = _window_filter(select(ProductionTask), start_date, end_date)
    if status_filter is not None:
        query = query.where(ProductionTask.status == status_filter.value)
    if order_id is not None:
        query = query.where(ProductionTask.order_id == order_id)

    query = query.order_by(ProductionTask.planned_start).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/calendar", response_model=list[CalendarTask])
async def get_calendar(
    start_date: UtcDatetime = Query(...),
    end_date: UtcDatetime = Query(...),
    db: AsyncSession = Depends(get_db),
) -> list[CalendarTask]:
    """Tasks overlapping the window in calendar form, coloured by status."""
    query = _window_filter(
        select(ProductionTask).options(
            selectinload(ProductionTask.order),
            selectinload(ProductionTask.assignments),
        ),
        start_date,
        end_date,
    ).order_by(ProductionTask.planned_start)
    result = await db.execute(query)

    return [
        CalendarTask(
            id=task.id,
            title=task.title,
            order_id=task.order_id,
            order_name=task.order.customer_name if task.order else None,
            start=task.planned_start,
            end=task.planned_end,
            status=task.status,
            progress=task.completion_percentage,
            color=status_color(task.status),
            resource_ids=[a.resource_id for a in task.assignments],
        )
        for task in result.scalars().all()
    ]


@router.get("/order/{order_id}", response_model=list[TaskResponse])
async def list_tasks_for_order(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[ProductionTask]:
    """All tasks of an order, ordered by planned start."""
    if await ScheduleStore(db).find_order(order_id) is None:
        raise HTTPException(status_code=404, detail="Order not found")
    result = await db.execute(
        select(ProductionTask)
        .where(ProductionTask.order_id == order_id)
        .order_by(ProductionTask.planned_start)
    )
    return list(result.scalars().all())


@router.get("/resource/{resource_id}", response_model=list[TaskResponse])
async def list_tasks_for_resource(
    resource_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[ProductionTask]:
    """Tasks the resource is assigned to, ordered by planned start."""
    result = await db.execute(
        select(ProductionTask)
        .join(TaskResourceAssignment, TaskResourceAssignment.task_id == ProductionTask.id)
        .where(TaskResourceAssignment.resource_id == resource_id)
        .order_by(ProductionTask.planned_start)
    )
    return list(result.scalars().unique().all())


# ---------------------------------------------------------------
# Scheduling operations
# ---------------------------------------------------------------


@router.post(
    "/reschedule",
    response_model=RescheduleResult,
    dependencies=[Depends(rate_limit_scheduling)],
)
async def reschedule_task(
    payload: RescheduleRequest,
    db: AsyncSession = Depends(get_db),
) -> RescheduleResult:
    """Move a task to a new start; its assignments move by the same amount.

    Returns the updated task together with any resource over-allocation the
    new position causes. Conflicts do not prevent the move.
    """
    try:
        outcome = await Rescheduler(ScheduleStore(db)).reschedule_task(
            payload.task_id,
            payload.new_start_date,
            Actor(payload.user_id, payload.user_name),
            expected_version=payload.expected_version,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc)

    return RescheduleResult(
        task=TaskResponse.model_validate(outcome.task),
        has_conflicts=outcome.has_conflicts,
        conflicts=[ConflictResponse.model_validate(c) for c in outcome.conflicts],
    )


@router.post(
    "/assign-resource",
    response_model=AssignResourceResult,
    dependencies=[Depends(rate_limit_scheduling)],
)
async def assign_resource(
    payload: AssignResourceRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignResourceResult:
    """Assign a resource to a task, updating the existing pair if present."""
    try:
        outcome = await AssignmentManager(ScheduleStore(db)).assign_resource(
            payload.task_id,
            payload.resource_id,
            payload.start_time,
            payload.end_time,
            payload.allocation_percentage,
            Actor(payload.user_id, payload.user_name),
            notes=payload.notes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc)

    return AssignResourceResult(
        assignment=AssignmentResponse.model_validate(outcome.assignment),
        created=outcome.created,
        has_conflicts=outcome.has_conflicts,
        conflicts=[ConflictResponse.model_validate(c) for c in outcome.conflicts],
    )


@router.delete(
    "/unassign-resource/{task_id}/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def unassign_resource(
    task_id: uuid.UUID,
    resource_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove a resource from a task."""
    try:
        removed = await AssignmentManager(ScheduleStore(db)).unassign_resource(task_id, resource_id)
    except SchedulingError as exc:
        raise to_http_exception(exc)
    if not removed:
        raise HTTPException(status_code=404, detail="Assignment not found")


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_assignment(
    assignment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove a single assignment by its id."""
    try:
        removed = await AssignmentManager(ScheduleStore(db)).remove_assignment(assignment_id)
    except SchedulingError as exc:
        raise to_http_exception(exc)
    if not removed:
        raise HTTPException(status_code=404, detail="Assignment not found")


# ---------------------------------------------------------------
# Single task
# ---------------------------------------------------------------


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
) -> ProductionTask:
    """Create a planned task on an existing order."""
    store = ScheduleStore(db)
    try:
        if await store.find_order(payload.order_id) is None:
            raise NotFoundError("Order", payload.order_id)
        predecessors = await resolve_predecessors(store, payload.predecessor_task_ids)

        task = ProductionTask(
            **payload.model_dump(exclude={"predecessor_task_ids", "user_id", "user_name"}),
            predecessor_task_ids=predecessors,
            status=TaskStatus.PLANNED.value,
            completion_percentage=0,
            created_at=datetime.now(timezone.utc),
            created_by_id=payload.user_id,
            created_by_name=payload.user_name,
        )
        await store.save_task(task)
    except SchedulingError as exc:
        raise to_http_exception(exc)

    await db.refresh(task)
    return task


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> TaskDetailResponse:
    """Get a task with its resource assignments."""
    store = ScheduleStore(db)
    task = await store.find_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    assignments = await store.list_assignments_for_task(task_id)
    return TaskDetailResponse(
        task=TaskResponse.model_validate(task),
        resource_assignments=[AssignmentResponse.model_validate(a) for a in assignments],
    )


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdate,
    db: AsyncSession = Depends(get_db),
) -> ProductionTask:
    """Replace a task's planning fields.

    Assignments are left where they are; use the reschedule endpoint to move
    a task together with its assignments.
    """
    store = ScheduleStore(db)
    try:
        task = await store.find_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        if payload.expected_version is not None and task.version != payload.expected_version:
            raise ConcurrencyConflictError(
                f"Task {task_id} is at version {task.version}, expected {payload.expected_version}"
            )
        if payload.order_id != task.order_id and await store.find_order(payload.order_id) is None:
            raise NotFoundError("Order", payload.order_id)
        predecessors = await resolve_predecessors(store, payload.predecessor_task_ids, task_id)

        fields = payload.model_dump(
            exclude={"predecessor_task_ids", "user_id", "user_name", "expected_version"}
        )
        for field, value in fields.items():
            setattr(task, field, value)
        task.predecessor_task_ids = predecessors
        task.updated_at = datetime.now(timezone.utc)
        task.updated_by_id = payload.user_id
        task.updated_by_name = payload.user_name
        await store.save_task(task)
    except SchedulingError as exc:
        raise to_http_exception(exc)

    await db.refresh(task)
    return task


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: uuid.UUID,
    payload: TaskStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> ProductionTask:
    """Move a task through its lifecycle and record progress."""
    try:
        return await change_status(
            ScheduleStore(db),
            task_id,
            payload.status,
            payload.completion_percentage,
            Actor(payload.user_id, payload.user_name),
        )
    except SchedulingError as exc:
        raise to_http_exception(exc)


@router.get("/{task_id}/conflicts", response_model=ConflictReport)
async def get_task_conflicts(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ConflictReport:
    """Current resource over-allocations involving this task."""
    store = ScheduleStore(db)
    if await store.find_task(task_id) is None:
        raise HTTPException(status_code=404, detail="Task not found")
    conflicts = await ConflictDetector(store).detect_conflicts(task_id)
    return ConflictReport(
        task_id=task_id,
        has_conflicts=bool(conflicts),
        conflicts=[ConflictResponse.model_validate(c) for c in conflicts],
    )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a task; its resource assignments are removed with it."""
    store = ScheduleStore(db)
    task = await store.find_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    await db.delete(task)
    try:
        await store.flush()
    except SchedulingError as exc:
        raise to_http_exception(exc)
