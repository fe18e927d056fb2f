"""Binding resources to production tasks.

A task holds at most one assignment per resource. Assigning the same
resource again rewrites that assignment's window, allocation and notes
instead of adding a second row.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from orderflow.models.assignment import TaskResourceAssignment
from orderflow.services.actor import Actor
from orderflow.services.conflict_detector import Conflict, ConflictDetector, as_utc
from orderflow.services.exceptions import InvalidInputError, NotFoundError
from orderflow.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


def validate_window(start: datetime, end: datetime) -> None:
    if as_utc(end) < as_utc(start):
        raise InvalidInputError(f"End time {end.isoformat()} is before start time {start.isoformat()}")


def validate_allocation(allocation_pct: float) -> None:
    if not 0 <= allocation_pct <= 100:
        raise InvalidInputError(f"Allocation percentage must be within 0-100, got {allocation_pct}")


@dataclass
class AssignmentOutcome:
    assignment: TaskResourceAssignment
    created: bool
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class AssignmentManager:
    """Creates, updates and removes task/resource assignments."""

    def __init__(self, store: ScheduleStore, detector: ConflictDetector | None = None) -> None:
        self.store = store
        self.detector = detector or ConflictDetector(store)

    async def assign_resource(
        self,
        task_id: uuid.UUID,
        resource_id: uuid.UUID,
        start: datetime,
        end: datetime,
        allocation_pct: float,
        actor: Actor,
        notes: str | None = None,
    ) -> AssignmentOutcome:
        """Assign a resource to a task, or update the existing assignment.

        The write always goes through; over-allocation is reported in the
        returned outcome's ``conflicts``.
        """
        start, end = as_utc(start), as_utc(end)
        validate_window(start, end)
        validate_allocation(allocation_pct)

        if await self.store.find_task(task_id) is None:
            raise NotFoundError("Task", task_id)
        resource = await self.store.find_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", resource_id)
        if not resource.is_active:
            raise InvalidInputError(f"Resource {resource.name} is inactive and cannot be assigned")

        assignment = await self.store.find_assignment_for_pair(task_id, resource_id)
        created = assignment is None
        if assignment is None:
            assignment = TaskResourceAssignment(
                task_id=task_id,
                resource_id=resource_id,
                created_at=datetime.now(timezone.utc),
                created_by_id=actor.user_id,
                created_by_name=actor.user_name,
            )
        assignment.start_time = start
        assignment.end_time = end
        assignment.allocation_percentage = allocation_pct
        assignment.notes = notes

        await self.store.upsert_assignment(assignment)
        logger.info(
            "%s assignment of resource %s to task %s (%s - %s @ %.0f%%) by user %s",
            "Created" if created else "Updated",
            resource_id,
            task_id,
            start.isoformat(),
            end.isoformat(),
            allocation_pct,
            actor.user_id,
        )

        conflicts = await self.detector.detect_conflicts(task_id)
        return AssignmentOutcome(assignment=assignment, created=created, conflicts=conflicts)

    async def unassign_resource(self, task_id: uuid.UUID, resource_id: uuid.UUID) -> bool:
        """Remove the task/resource pair's assignment. False if there is none."""
        assignment = await self.store.find_assignment_for_pair(task_id, resource_id)
        if assignment is None:
            return False
        removed = await self.store.delete_assignment(assignment.id)
        if removed:
            logger.info("Unassigned resource %s from task %s", resource_id, task_id)
        return removed

    async def remove_assignment(self, assignment_id: uuid.UUID) -> bool:
        """Remove an assignment by its own id. False if it does not exist."""
        removed = await self.store.delete_assignment(assignment_id)
        if removed:
            logger.info("Removed assignment %s", assignment_id)
        return removed
