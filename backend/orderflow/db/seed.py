"""Seed script with demo scheduling data.

Scenarios covered:
1. An order broken into sequential tasks linked by predecessors
2. A machine double-booked at 100% + 60% on overlapping windows (conflict)
3. A person shared at 50% across two tasks (no conflict)
4. An inactive tool that never shows up in availability searches
"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db.init_db import table_has_data
from orderflow.models.assignment import TaskResourceAssignment
from orderflow.models.order import Order
from orderflow.models.resource import Resource, ResourceType
from orderflow.models.task import ProductionTask, TaskStatus

SEED_USER_ID = 1
SEED_USER_NAME = "seed"

# Fixed UUIDs for deterministic seeding
ORDER_IDS = {
    "SO-2026-001": uuid.UUID("c0000000-0000-0000-0000-000000000001"),
    "SO-2026-002": uuid.UUID("c0000000-0000-0000-0000-000000000002"),
}

RESOURCE_IDS = {
    "CNC-01": uuid.UUID("d0000000-0000-0000-0000-000000000001"),
    "Press-02": uuid.UUID("d0000000-0000-0000-0000-000000000002"),
    "Operator Lee": uuid.UUID("d0000000-0000-0000-0000-000000000003"),
    "Torque Wrench": uuid.UUID("d0000000-0000-0000-0000-000000000004"),
    "Packing Line A": uuid.UUID("d0000000-0000-0000-0000-000000000005"),
}

TASK_IDS = {
    "cut": uuid.UUID("e0000000-0000-0000-0000-000000000001"),
    "press": uuid.UUID("e0000000-0000-0000-0000-000000000002"),
    "assemble": uuid.UUID("e0000000-0000-0000-0000-000000000003"),
    "pack": uuid.UUID("e0000000-0000-0000-0000-000000000004"),
    "rush_cut": uuid.UUID("e0000000-0000-0000-0000-000000000005"),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _next_monday() -> datetime:
    """Midnight UTC of the coming Monday, so demo windows stay in the future."""
    today = _now().replace(hour=0, minute=0, second=0, microsecond=0)
    return today + timedelta(days=7 - today.weekday())


def _at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def _create_orders() -> list[Order]:
    return [
        Order(
            id=ORDER_IDS["SO-2026-001"],
            order_no="SO-2026-001",
            customer_name="Northwind Fixtures",
            order_date=_now() - timedelta(days=3),
            quantity=250,
            status="Confirmed",
            description="Steel mounting brackets, zinc plated",
        ),
        Order(
            id=ORDER_IDS["SO-2026-002"],
            order_no="SO-2026-002",
            customer_name="Contoso Rail",
            order_date=_now() - timedelta(days=1),
            quantity=40,
            status="Rush",
            description="Replacement hinge plates, expedited",
        ),
    ]


def _create_resources() -> list[Resource]:
    """Create one resource of each type plus an inactive tool."""
    return [
        Resource(
            id=RESOURCE_IDS["CNC-01"],
            name="CNC-01",
            resource_type=ResourceType.MACHINE.value,
            department="Machining",
            capacity=1.0,
            cost_per_hour=85.0,
            capabilities="milling,drilling",
            working_hours="08:00-17:00",
            days_off="Saturday,Sunday",
        ),
        Resource(
            id=RESOURCE_IDS["Press-02"],
            name="Press-02",
            resource_type=ResourceType.MACHINE.value,
            department="Forming",
            capacity=1.0,
            cost_per_hour=60.0,
            capabilities="stamping,bending",
            working_hours="06:00-22:00",
        ),
        Resource(
            id=RESOURCE_IDS["Operator Lee"],
            name="Operator Lee",
            resource_type=ResourceType.PERSON.value,
            department="Assembly",
            cost_per_hour=32.0,
            capabilities="assembly,inspection",
            working_hours="08:00-16:00",
            days_off="Sunday",
        ),
        Resource(
            id=RESOURCE_IDS["Torque Wrench"],
            name="Torque Wrench",
            resource_type=ResourceType.TOOL.value,
            department="Assembly",
            is_active=False,
            notes="Out for calibration",
        ),
        Resource(
            id=RESOURCE_IDS["Packing Line A"],
            name="Packing Line A",
            resource_type=ResourceType.LINE.value,
            department="Logistics",
            capacity=500.0,
            cost_per_hour=40.0,
        ),
    ]


def _task(key: str, order_key: str, title: str, task_type: str,
          start: datetime, end: datetime, **extra) -> ProductionTask:
    return ProductionTask(
        id=TASK_IDS[key],
        order_id=ORDER_IDS[order_key],
        title=title,
        task_type=task_type,
        status=TaskStatus.PLANNED.value,
        planned_start=start,
        planned_end=end,
        estimated_duration=int((end - start).total_seconds() // 60),
        created_at=_now(),
        created_by_id=SEED_USER_ID,
        created_by_name=SEED_USER_NAME,
        **extra,
    )


def _create_tasks(monday: datetime) -> list[ProductionTask]:
    tuesday = monday + timedelta(days=1)
    return [
        _task("cut", "SO-2026-001", "Cut bracket blanks", "Production",
              _at(monday, 10), _at(monday, 14), priority=2),
        _task("press", "SO-2026-001", "Bend brackets", "Production",
              _at(monday, 14), _at(monday, 18),
              predecessor_task_ids=str(TASK_IDS["cut"])),
        _task("assemble", "SO-2026-001", "Fit hardware", "Assembly",
              _at(tuesday, 8), _at(tuesday, 12),
              predecessor_task_ids=str(TASK_IDS["press"])),
        _task("pack", "SO-2026-001", "Pack and label", "Packaging",
              _at(tuesday, 13), _at(tuesday, 15),
              predecessor_task_ids=str(TASK_IDS["assemble"])),
        _task("rush_cut", "SO-2026-002", "Cut hinge plates", "Production",
              _at(monday, 12), _at(monday, 16), priority=1,
              notes="Expedited; shares CNC-01 with SO-2026-001"),
    ]


def _assignment(task_key: str, resource_key: str, start: datetime, end: datetime,
                allocation: float = 100.0) -> TaskResourceAssignment:
    return TaskResourceAssignment(
        task_id=TASK_IDS[task_key],
        resource_id=RESOURCE_IDS[resource_key],
        start_time=start,
        end_time=end,
        allocation_percentage=allocation,
        created_at=_now(),
        created_by_id=SEED_USER_ID,
        created_by_name=SEED_USER_NAME,
    )


def _create_assignments(monday: datetime) -> list[TaskResourceAssignment]:
    tuesday = monday + timedelta(days=1)
    return [
        # CNC-01 is double booked 12:00-14:00 at 160%
        _assignment("cut", "CNC-01", _at(monday, 10), _at(monday, 14)),
        _assignment("rush_cut", "CNC-01", _at(monday, 12), _at(monday, 16), 60.0),
        _assignment("press", "Press-02", _at(monday, 14), _at(monday, 18)),
        _assignment("press", "Operator Lee", _at(monday, 14), _at(monday, 18), 50.0),
        _assignment("assemble", "Operator Lee", _at(tuesday, 8), _at(tuesday, 12), 50.0),
        _assignment("pack", "Packing Line A", _at(tuesday, 13), _at(tuesday, 15)),
    ]


async def seed_demo_data(session: AsyncSession) -> dict[str, int]:
    """Seed the database with demo orders, resources, tasks and assignments.

    Args:
        session: An async SQLAlchemy session.

    Returns:
        Dictionary with counts of created entities.
    """
    monday = _next_monday()
    orders = _create_orders()
    resources = _create_resources()

    session.add_all(orders)
    session.add_all(resources)
    await session.flush()

    tasks = _create_tasks(monday)
    session.add_all(tasks)
    await session.flush()

    assignments = _create_assignments(monday)
    session.add_all(assignments)
    await session.flush()

    return {
        "orders": len(orders),
        "resources": len(resources),
        "tasks": len(tasks),
        "assignments": len(assignments),
    }


async def seed_if_empty(session: AsyncSession) -> dict[str, int] | None:
    """Seed demo data only if no orders exist yet.

    Returns:
        Seed counts if data was seeded, None if database already has data.
    """
    if await table_has_data(session, "orders"):
        return None

    return await seed_demo_data(session)
