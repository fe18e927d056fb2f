"""Task status transitions and predecessor references.

Legal transitions::

    Planned    -> InProgress
    InProgress -> Completed | OnHold | Cancelled
    OnHold     -> InProgress

Completed and Cancelled are terminal. Re-stating the current status is
accepted so progress can be reported without a state change.
"""

import logging
import math
import uuid
from datetime import datetime, timezone

from orderflow.models.task import ProductionTask, TaskStatus
from orderflow.services.actor import Actor
from orderflow.services.exceptions import InvalidInputError, NotFoundError
from orderflow.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PLANNED: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset(
        {TaskStatus.COMPLETED, TaskStatus.ON_HOLD, TaskStatus.CANCELLED}
    ),
    TaskStatus.ON_HOLD: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}

STATUS_COLORS: dict[TaskStatus, str] = {
    TaskStatus.PLANNED: "#3498db",
    TaskStatus.IN_PROGRESS: "#f39c12",
    TaskStatus.COMPLETED: "#2ecc71",
    TaskStatus.ON_HOLD: "#95a5a6",
    TaskStatus.CANCELLED: "#e74c3c",
}


def parse_status(value: str | TaskStatus) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown task status: {value!r}") from exc


def status_color(value: str) -> str:
    try:
        return STATUS_COLORS[TaskStatus(value)]
    except ValueError:
        return STATUS_COLORS[TaskStatus.PLANNED]


def validate_transition(current: TaskStatus, target: TaskStatus) -> None:
    if current == target:
        return
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidInputError(
            f"Cannot move task from {current.value} to {target.value}"
        )


def apply_status_change(
    task: ProductionTask,
    target: TaskStatus,
    completion: int,
    actor: Actor,
    now: datetime | None = None,
) -> None:
    """Validate and apply a status change in place, stamping actual times."""
    if not 0 <= completion <= 100:
        raise InvalidInputError(f"Completion percentage must be within 0-100, got {completion}")
    current = parse_status(task.status)
    validate_transition(current, target)
    now = now or datetime.now(timezone.utc)

    task.status = target.value
    task.completion_percentage = completion
    if target is TaskStatus.IN_PROGRESS and task.actual_start is None:
        task.actual_start = now
    if target is TaskStatus.COMPLETED:
        if task.actual_end is None:
            task.actual_end = now
        if task.actual_start is not None:
            minutes = (task.actual_end - task.actual_start).total_seconds() / 60.0
            task.actual_duration = math.floor(minutes + 0.5)
        task.completion_percentage = 100

    task.updated_at = now
    task.updated_by_id = actor.user_id
    task.updated_by_name = actor.user_name


def parse_predecessor_ids(
    text: str | None, task_id: uuid.UUID | None = None
) -> list[uuid.UUID]:
    """Parse a comma-separated id list, ignoring blanks and duplicates."""
    if not text:
        return []
    ids: list[uuid.UUID] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            predecessor = uuid.UUID(part)
        except ValueError as exc:
            raise InvalidInputError(f"Malformed predecessor task id: {part!r}") from exc
        if task_id is not None and predecessor == task_id:
            raise InvalidInputError("A task cannot be its own predecessor")
        if predecessor not in ids:
            ids.append(predecessor)
    return ids


def format_predecessor_ids(ids: list[uuid.UUID]) -> str | None:
    return ",".join(str(i) for i in ids) or None


async def resolve_predecessors(
    store: ScheduleStore, text: str | None, task_id: uuid.UUID | None = None
) -> str | None:
    """Validate a predecessor list against the store and return it normalized."""
    ids = parse_predecessor_ids(text, task_id)
    for predecessor in ids:
        if await store.find_task(predecessor) is None:
            raise NotFoundError("Predecessor task", predecessor)
    return format_predecessor_ids(ids)


async def change_status(
    store: ScheduleStore,
    task_id: uuid.UUID,
    status: TaskStatus,
    completion: int,
    actor: Actor,
) -> ProductionTask:
    task = await store.find_task(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    previous = task.status
    apply_status_change(task, status, completion, actor)
    await store.save_task(task)
    logger.info(
        "Task %s status %s -> %s (%d%%) by user %s",
        task_id,
        previous,
        task.status,
        task.completion_percentage,
        actor.user_id,
    )
    return task
