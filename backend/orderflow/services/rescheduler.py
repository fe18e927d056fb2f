"""Moving a task in time together with its resource assignments."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from orderflow.models.task import ProductionTask
from orderflow.services.actor import Actor
from orderflow.services.conflict_detector import Conflict, ConflictDetector, as_utc
from orderflow.services.exceptions import ConcurrencyConflictError, NotFoundError
from orderflow.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class RescheduleOutcome:
    task: ProductionTask
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class Rescheduler:
    """Shifts a task's planned window and every assignment by the same delta."""

    def __init__(self, store: ScheduleStore, detector: ConflictDetector | None = None) -> None:
        self.store = store
        self.detector = detector or ConflictDetector(store)

    async def reschedule_task(
        self,
        task_id: uuid.UUID,
        new_start: datetime,
        actor: Actor,
        expected_version: int | None = None,
    ) -> RescheduleOutcome:
        """Move the task so it starts at ``new_start``.

        The task keeps its duration, and each assignment keeps its own
        duration and its offset from the task's planned start. Task and
        assignments are flushed together; a stale row raises
        ConcurrencyConflictError and the request transaction rolls back
        without any of the shifts.
        """
        task = await self.store.find_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        if expected_version is not None and task.version != expected_version:
            raise ConcurrencyConflictError(
                f"Task {task_id} is at version {task.version}, expected {expected_version}"
            )

        # Load before touching the task: the query autoflushes pending changes.
        assignments = await self.store.list_assignments_for_task(task_id)

        new_start = as_utc(new_start)
        delta = new_start - task.planned_start
        task.planned_start = new_start
        task.planned_end = task.planned_end + delta
        task.updated_at = datetime.now(timezone.utc)
        task.updated_by_id = actor.user_id
        task.updated_by_name = actor.user_name

        for assignment in assignments:
            assignment.start_time = assignment.start_time + delta
            assignment.end_time = assignment.end_time + delta

        await self.store.save_task(task)
        logger.info(
            "Rescheduled task %s by %s (%d assignment(s) shifted) by user %s",
            task_id,
            delta,
            len(assignments),
            actor.user_id,
        )

        conflicts = await self.detector.detect_conflicts(task_id)
        return RescheduleOutcome(task=task, conflicts=conflicts)
