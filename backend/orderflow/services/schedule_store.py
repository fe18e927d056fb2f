"""Persistence gateway used by the scheduling services.

Wraps the request's AsyncSession. Writes are flushed immediately so stale
rows and constraint races surface inside the service call, where they are
translated into scheduling errors; the enclosing ``get_db`` transaction
decides commit or rollback.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import Executable, Result, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from orderflow.models.assignment import TaskResourceAssignment
from orderflow.models.order import Order
from orderflow.models.resource import Resource
from orderflow.models.task import ProductionTask
from orderflow.services.exceptions import ConcurrencyConflictError, InvalidInputError

logger = logging.getLogger(__name__)

PAIR_CONSTRAINT = "uq_assignment_task_resource"


class ScheduleStore:
    """Task, resource and assignment records over one database session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------

    async def find_task(self, task_id: uuid.UUID) -> ProductionTask | None:
        result = await self._execute(
            select(ProductionTask).where(ProductionTask.id == task_id)
        )
        return result.scalar_one_or_none()

    async def find_resource(self, resource_id: uuid.UUID) -> Resource | None:
        result = await self._execute(select(Resource).where(Resource.id == resource_id))
        return result.scalar_one_or_none()

    async def find_order(self, order_id: uuid.UUID) -> Order | None:
        result = await self._execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def find_assignment(self, assignment_id: uuid.UUID) -> TaskResourceAssignment | None:
        result = await self._execute(
            select(TaskResourceAssignment).where(TaskResourceAssignment.id == assignment_id)
        )
        return result.scalar_one_or_none()

    async def find_assignment_for_pair(
        self, task_id: uuid.UUID, resource_id: uuid.UUID
    ) -> TaskResourceAssignment | None:
        result = await self._execute(
            select(TaskResourceAssignment).where(
                TaskResourceAssignment.task_id == task_id,
                TaskResourceAssignment.resource_id == resource_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_assignments_for_task(self, task_id: uuid.UUID) -> list[TaskResourceAssignment]:
        result = await self._execute(
            select(TaskResourceAssignment)
            .where(TaskResourceAssignment.task_id == task_id)
            .order_by(TaskResourceAssignment.start_time)
        )
        return list(result.scalars().all())

    async def list_assignments_for_resource(
        self, resource_id: uuid.UUID
    ) -> list[TaskResourceAssignment]:
        result = await self._execute(
            select(TaskResourceAssignment)
            .where(TaskResourceAssignment.resource_id == resource_id)
            .order_by(TaskResourceAssignment.start_time)
        )
        return list(result.scalars().all())

    async def list_assignments_between(
        self,
        start: datetime,
        end: datetime,
        resource_id: uuid.UUID | None = None,
    ) -> list[TaskResourceAssignment]:
        """Assignments whose window touches [start, end], boundaries included.

        Callers apply their own overlap rule on top of this prefilter.
        """
        query = select(TaskResourceAssignment).where(
            TaskResourceAssignment.start_time <= end,
            TaskResourceAssignment.end_time >= start,
        )
        if resource_id is not None:
            query = query.where(TaskResourceAssignment.resource_id == resource_id)
        result = await self._execute(query.order_by(TaskResourceAssignment.start_time))
        return list(result.scalars().all())

    async def resource_has_assignments(self, resource_id: uuid.UUID) -> bool:
        result = await self._execute(
            select(TaskResourceAssignment.id)
            .where(TaskResourceAssignment.resource_id == resource_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_resources(self, resource_id: uuid.UUID | None = None) -> list[Resource]:
        query = select(Resource)
        if resource_id is not None:
            query = query.where(Resource.id == resource_id)
        result = await self._execute(query.order_by(Resource.name))
        return list(result.scalars().all())

    async def list_active_resources(self) -> list[Resource]:
        result = await self._execute(
            select(Resource).where(Resource.is_active.is_(True)).order_by(Resource.name)
        )
        return list(result.scalars().all())

    # ---------------------------------------------------------------
    # Writes
    # ---------------------------------------------------------------

    async def save_task(self, task: ProductionTask) -> ProductionTask:
        self.db.add(task)
        await self.flush()
        return task

    async def upsert_assignment(self, assignment: TaskResourceAssignment) -> TaskResourceAssignment:
        self.db.add(assignment)
        await self.flush()
        return assignment

    async def delete_assignment(self, assignment_id: uuid.UUID) -> bool:
        assignment = await self.find_assignment(assignment_id)
        if assignment is None:
            return False
        await self.db.delete(assignment)
        await self.flush()
        return True

    async def flush(self) -> None:
        """Flush pending changes, translating concurrency failures."""
        with _translate_write_errors():
            await self.db.flush()

    async def _execute(self, statement: Executable) -> Result:
        # Queries autoflush pending changes, so they can fail like a flush.
        with _translate_write_errors():
            return await self.db.execute(statement)


@contextmanager
def _translate_write_errors() -> Iterator[None]:
    try:
        yield
    except StaleDataError as exc:
        logger.warning("Stale write rejected: %s", exc)
        raise ConcurrencyConflictError(
            "Record was modified by another request; reload and retry"
        ) from exc
    except IntegrityError as exc:
        if PAIR_CONSTRAINT in str(exc.orig):
            logger.warning("Concurrent assignment of the same task/resource pair")
            raise ConcurrencyConflictError(
                "Resource was assigned to this task concurrently; reload and retry"
            ) from exc
        raise InvalidInputError(f"Rejected by database constraint: {exc.orig}") from exc
