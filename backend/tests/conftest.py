"""Pytest configuration with fixtures for async testing."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.models.assignment import TaskResourceAssignment
from orderflow.models.order import Order
from orderflow.models.resource import Resource, ResourceType
from orderflow.models.task import ProductionTask, TaskStatus
from orderflow.services.actor import Actor

BASE_TIME = datetime(2023, 1, 16, 0, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, day: int = 0) -> datetime:
    """2023-01-16 plus ``day`` days at hour:minute UTC."""
    return BASE_TIME + timedelta(days=day, hours=hour, minutes=minute)


# ---------------------------------------------------------------------------
# Test Data Factories (using MagicMock for SQLAlchemy 2.0 compatibility)
# ---------------------------------------------------------------------------


def _make_mock(defaults: dict[str, Any], overrides: dict[str, Any]) -> MagicMock:
    """Create a MagicMock with given attributes."""
    merged = {**defaults, **overrides}
    mock = MagicMock()
    for k, v in merged.items():
        setattr(mock, k, v)
    return mock


class OrderFactory:
    """Factory for creating Order instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {
            "id": uuid.uuid4(),
            "order_no": f"SO-{cls._counter:04d}",
            "customer_name": f"Customer {cls._counter}",
            "order_date": datetime.now(timezone.utc),
            "quantity": 100,
            "status": "New",
            "description": None,
            "created_at": datetime.now(timezone.utc),
            "updated_at": datetime.now(timezone.utc),
        }
        return _make_mock(defaults, overrides)


class TaskFactory:
    """Factory for creating ProductionTask instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {
            "id": uuid.uuid4(),
            "order_id": uuid.uuid4(),
            "title": f"Task {cls._counter}",
            "description": None,
            "task_type": "Production",
            "priority": 3,
            "status": TaskStatus.PLANNED.value,
            "estimated_duration": 120,
            "actual_duration": None,
            "planned_start": at(9),
            "planned_end": at(11),
            "actual_start": None,
            "actual_end": None,
            "predecessor_task_ids": None,
            "completion_percentage": 0,
            "notes": None,
            "version": 1,
            "created_at": datetime.now(timezone.utc),
            "created_by_id": 1,
            "created_by_name": "planner",
            "updated_at": None,
            "updated_by_id": None,
            "updated_by_name": None,
        }
        return _make_mock(defaults, overrides)


class ResourceFactory:
    """Factory for creating Resource instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {
            "id": uuid.uuid4(),
            "name": f"Machine-{cls._counter}",
            "resource_type": ResourceType.MACHINE.value,
            "department": "Machining",
            "capacity": 1.0,
            "cost_per_hour": 50.0,
            "capabilities": None,
            "is_active": True,
            "working_hours": "08:00-16:00",
            "days_off": None,
            "notes": None,
            "version": 1,
            "created_at": datetime.now(timezone.utc),
            "updated_at": datetime.now(timezone.utc),
        }
        return _make_mock(defaults, overrides)


class AssignmentFactory:
    """Factory for creating TaskResourceAssignment instances for testing."""

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        defaults = {
            "id": uuid.uuid4(),
            "task_id": uuid.uuid4(),
            "resource_id": uuid.uuid4(),
            "start_time": at(9),
            "end_time": at(11),
            "allocation_percentage": 100.0,
            "notes": None,
            "version": 1,
            "created_at": datetime.now(timezone.utc),
            "created_by_id": 1,
            "created_by_name": "planner",
        }
        return _make_mock(defaults, overrides)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryScheduleStore:
    """Dict-backed stand-in for ScheduleStore holding real ORM instances.

    Set ``fail_on_flush`` to an exception to make the next write raise it,
    the way ScheduleStore.flush surfaces a stale row.
    """

    def __init__(self) -> None:
        self.orders: dict[uuid.UUID, Order] = {}
        self.tasks: dict[uuid.UUID, ProductionTask] = {}
        self.resources: dict[uuid.UUID, Resource] = {}
        self.assignments: dict[uuid.UUID, TaskResourceAssignment] = {}
        self.fail_on_flush: Exception | None = None
        self.flush_count = 0

    # -- builders -----------------------------------------------------------

    def add_order(self, **overrides: Any) -> Order:
        fields = {
            "id": uuid.uuid4(),
            "order_no": f"SO-{len(self.orders) + 1:04d}",
            "customer_name": "Acme",
            "order_date": BASE_TIME,
            "quantity": 10,
            "status": "New",
        }
        order = Order(**{**fields, **overrides})
        self.orders[order.id] = order
        return order

    def add_task(self, start: datetime, end: datetime, **overrides: Any) -> ProductionTask:
        fields = {
            "id": uuid.uuid4(),
            "order_id": uuid.uuid4(),
            "title": f"Task {len(self.tasks) + 1}",
            "task_type": "Production",
            "priority": 3,
            "status": TaskStatus.PLANNED.value,
            "estimated_duration": int((end - start).total_seconds() // 60),
            "planned_start": start,
            "planned_end": end,
            "completion_percentage": 0,
            "version": 1,
            "created_at": BASE_TIME,
            "created_by_id": 1,
            "created_by_name": "planner",
        }
        task = ProductionTask(**{**fields, **overrides})
        self.tasks[task.id] = task
        return task

    def add_resource(self, name: str = "CNC-01", **overrides: Any) -> Resource:
        fields = {
            "id": uuid.uuid4(),
            "name": name,
            "resource_type": ResourceType.MACHINE.value,
            "is_active": True,
            "version": 1,
        }
        resource = Resource(**{**fields, **overrides})
        self.resources[resource.id] = resource
        return resource

    def add_assignment(
        self,
        task: ProductionTask,
        resource: Resource,
        start: datetime,
        end: datetime,
        allocation: float = 100.0,
    ) -> TaskResourceAssignment:
        assignment = TaskResourceAssignment(
            id=uuid.uuid4(),
            task_id=task.id,
            resource_id=resource.id,
            start_time=start,
            end_time=end,
            allocation_percentage=allocation,
            version=1,
            created_at=BASE_TIME,
            created_by_id=1,
            created_by_name="planner",
        )
        self.assignments[assignment.id] = assignment
        return assignment

    # -- ScheduleStore interface -------------------------------------------

    async def find_task(self, task_id: uuid.UUID) -> ProductionTask | None:
        return self.tasks.get(task_id)

    async def find_resource(self, resource_id: uuid.UUID) -> Resource | None:
        return self.resources.get(resource_id)

    async def find_order(self, order_id: uuid.UUID) -> Order | None:
        return self.orders.get(order_id)

    async def find_assignment(self, assignment_id: uuid.UUID) -> TaskResourceAssignment | None:
        return self.assignments.get(assignment_id)

    async def find_assignment_for_pair(
        self, task_id: uuid.UUID, resource_id: uuid.UUID
    ) -> TaskResourceAssignment | None:
        for assignment in self.assignments.values():
            if assignment.task_id == task_id and assignment.resource_id == resource_id:
                return assignment
        return None

    async def list_assignments_for_task(self, task_id: uuid.UUID) -> list[TaskResourceAssignment]:
        found = [a for a in self.assignments.values() if a.task_id == task_id]
        return sorted(found, key=lambda a: a.start_time)

    async def list_assignments_for_resource(
        self, resource_id: uuid.UUID
    ) -> list[TaskResourceAssignment]:
        found = [a for a in self.assignments.values() if a.resource_id == resource_id]
        return sorted(found, key=lambda a: a.start_time)

    async def list_assignments_between(
        self, start: datetime, end: datetime, resource_id: uuid.UUID | None = None
    ) -> list[TaskResourceAssignment]:
        found = [
            a
            for a in self.assignments.values()
            if a.start_time <= end
            and a.end_time >= start
            and (resource_id is None or a.resource_id == resource_id)
        ]
        return sorted(found, key=lambda a: a.start_time)

    async def resource_has_assignments(self, resource_id: uuid.UUID) -> bool:
        return any(a.resource_id == resource_id for a in self.assignments.values())

    async def list_resources(self, resource_id: uuid.UUID | None = None) -> list[Resource]:
        found = [
            r for r in self.resources.values() if resource_id is None or r.id == resource_id
        ]
        return sorted(found, key=lambda r: r.name)

    async def list_active_resources(self) -> list[Resource]:
        return sorted((r for r in self.resources.values() if r.is_active), key=lambda r: r.name)

    async def save_task(self, task: ProductionTask) -> ProductionTask:
        await self.flush()
        self.tasks[task.id] = task
        return task

    async def upsert_assignment(self, assignment: TaskResourceAssignment) -> TaskResourceAssignment:
        await self.flush()
        if assignment.id is None:
            assignment.id = uuid.uuid4()
            assignment.version = 1
        self.assignments[assignment.id] = assignment
        return assignment

    async def delete_assignment(self, assignment_id: uuid.UUID) -> bool:
        if assignment_id not in self.assignments:
            return False
        await self.flush()
        del self.assignments[assignment_id]
        return True

    async def flush(self) -> None:
        self.flush_count += 1
        if self.fail_on_flush is not None:
            raise self.fail_on_flush


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def order_factory():
    """Provide OrderFactory for tests."""
    OrderFactory._counter = 0
    return OrderFactory


@pytest.fixture
def task_factory():
    """Provide TaskFactory for tests."""
    TaskFactory._counter = 0
    return TaskFactory


@pytest.fixture
def resource_factory():
    """Provide ResourceFactory for tests."""
    ResourceFactory._counter = 0
    return ResourceFactory


@pytest.fixture
def assignment_factory():
    """Provide AssignmentFactory for tests."""
    return AssignmentFactory


@pytest.fixture
def store():
    """Provide an empty in-memory schedule store."""
    return InMemoryScheduleStore()


@pytest.fixture
def actor():
    return Actor(user_id=7, user_name="planner")


@pytest.fixture
def mock_db():
    """Provide a mock AsyncSession for unit tests."""
    session = AsyncMock(spec=AsyncSession)
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    return session
