"""Resource over-allocation detection.

Two assignments conflict when they sit on the same resource, belong to
different tasks, overlap in time, and their allocation percentages add up to
more than the allowed total (100% by default).

Windows are compared with strict inequalities: an assignment ending at 12:00
and another starting at 12:00 do not overlap, so back-to-back bookings are
never reported.

Detection is read-only and advisory. It runs after a write has been flushed
and reports what it finds; it never rejects the write.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from orderflow.core.config import settings
from orderflow.models.assignment import TaskResourceAssignment
from orderflow.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Read a timestamp without an offset as UTC; stored times always carry one."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def windows_overlap(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """True when the two windows share a non-empty stretch of time."""
    return other_start < end and other_end > start


def overlap_window(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> tuple[datetime, datetime]:
    return max(start, other_start), min(end, other_end)


@dataclass
class Conflict:
    """One over-allocated overlap between two tasks on one resource."""

    resource_id: uuid.UUID
    resource_name: str | None
    task_id: uuid.UUID
    conflicting_task_id: uuid.UUID
    conflicting_task_title: str | None
    start_time: datetime
    end_time: datetime
    total_allocation: float


class ConflictDetector:
    """Finds over-allocated overlaps for a task's resource assignments."""

    def __init__(self, store: ScheduleStore) -> None:
        self.store = store
        self._resource_names: dict[uuid.UUID, str | None] = {}
        self._task_titles: dict[uuid.UUID, str | None] = {}

    async def detect_conflicts(self, task_id: uuid.UUID) -> list[Conflict]:
        """Return every conflict between ``task_id`` and other tasks.

        An empty list means the task's assignments fit within every
        resource's capacity.
        """
        conflicts: list[Conflict] = []
        for assignment in await self.store.list_assignments_for_task(task_id):
            others = await self.store.list_assignments_for_resource(assignment.resource_id)
            for other in self._over_allocated(assignment, others):
                start, end = overlap_window(
                    assignment.start_time, assignment.end_time, other.start_time, other.end_time
                )
                conflicts.append(
                    Conflict(
                        resource_id=assignment.resource_id,
                        resource_name=await self._resource_name(assignment.resource_id),
                        task_id=task_id,
                        conflicting_task_id=other.task_id,
                        conflicting_task_title=await self._task_title(other.task_id),
                        start_time=start,
                        end_time=end,
                        total_allocation=assignment.allocation_percentage
                        + other.allocation_percentage,
                    )
                )

        if conflicts:
            logger.info("Task %s has %d resource conflict(s)", task_id, len(conflicts))
        return conflicts

    @staticmethod
    def _over_allocated(
        assignment: TaskResourceAssignment,
        candidates: list[TaskResourceAssignment],
    ) -> list[TaskResourceAssignment]:
        """Candidates from other tasks that overlap and push the total past the limit."""
        found = []
        for other in candidates:
            if other.task_id == assignment.task_id:
                continue
            if not windows_overlap(
                assignment.start_time, assignment.end_time, other.start_time, other.end_time
            ):
                continue
            total = assignment.allocation_percentage + other.allocation_percentage
            if total > settings.MAX_TOTAL_ALLOCATION:
                found.append(other)
        return found

    async def _resource_name(self, resource_id: uuid.UUID) -> str | None:
        if resource_id not in self._resource_names:
            resource = await self.store.find_resource(resource_id)
            self._resource_names[resource_id] = resource.name if resource else None
        return self._resource_names[resource_id]

    async def _task_title(self, task_id: uuid.UUID) -> str | None:
        if task_id not in self._task_titles:
            task = await self.store.find_task(task_id)
            self._task_titles[task_id] = task.title if task else None
        return self._task_titles[task_id]
