"""Resource load and availability over calendar windows."""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from orderflow.core.config import settings
from orderflow.models.resource import Resource
from orderflow.services.conflict_detector import as_utc, overlap_window, windows_overlap
from orderflow.services.exceptions import InvalidInputError, NotFoundError
from orderflow.services.schedule_store import ScheduleStore


@dataclass
class TimeSlot:
    start_time: datetime
    end_time: datetime
    task_id: uuid.UUID
    allocation_percentage: float


def _day_bounds(day: date, tz) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, start + timedelta(days=1)


class AvailabilityCalculator:
    """Per-day load fractions and free-resource lookups."""

    def __init__(self, store: ScheduleStore) -> None:
        self.store = store

    async def get_resource_load(
        self,
        resource_id: uuid.UUID,
        start_date: datetime,
        end_date: datetime,
        capped: bool = True,
    ) -> dict[date, float]:
        """Load fraction for every calendar day from start_date to end_date.

        Each assignment contributes ``hours_on_day / workday_hours *
        allocation / 100`` to each day it touches, where the workday is the
        nominal ``NOMINAL_WORKDAY_HOURS`` (8h). With ``capped`` the daily sum
        is clipped to 1.0; otherwise the raw sum is returned so
        over-commitment stays visible.

        Day boundaries follow ``start_date``'s timezone (UTC if naive).
        """
        start_date, end_date = as_utc(start_date), as_utc(end_date)
        if end_date < start_date:
            raise InvalidInputError("end_date must not be before start_date")
        if await self.store.find_resource(resource_id) is None:
            raise NotFoundError("Resource", resource_id)

        tz = start_date.tzinfo
        first_day, last_day = start_date.date(), end_date.date()
        range_start, _ = _day_bounds(first_day, tz)
        _, range_end = _day_bounds(last_day, tz)
        assignments = await self.store.list_assignments_between(
            range_start, range_end, resource_id=resource_id
        )

        workday_hours = settings.NOMINAL_WORKDAY_HOURS
        load: dict[date, float] = {}
        day = first_day
        while day <= last_day:
            day_start, day_end = _day_bounds(day, tz)
            total = 0.0
            for assignment in assignments:
                if not windows_overlap(
                    day_start, day_end, assignment.start_time, assignment.end_time
                ):
                    continue
                start, end = overlap_window(
                    day_start, day_end, assignment.start_time, assignment.end_time
                )
                hours = (end - start).total_seconds() / 3600.0
                total += hours / workday_hours * assignment.allocation_percentage / 100.0
            load[day] = min(total, 1.0) if capped else total
            day += timedelta(days=1)
        return load

    async def get_available_resources(self, start: datetime, end: datetime) -> list[Resource]:
        """Active resources not fully booked at any point of [start, end].

        Only assignments at the full allowed allocation
        (``MAX_TOTAL_ALLOCATION``) make a resource unavailable; partially
        allocated resources are still offered.
        """
        start, end = as_utc(start), as_utc(end)
        if end < start:
            raise InvalidInputError("end must not be before start")
        resources = await self.store.list_active_resources()
        busy = {
            assignment.resource_id
            for assignment in await self.store.list_assignments_between(start, end)
            if assignment.allocation_percentage >= settings.MAX_TOTAL_ALLOCATION
            and windows_overlap(start, end, assignment.start_time, assignment.end_time)
        }
        return [resource for resource in resources if resource.id not in busy]

    async def get_time_slots(
        self,
        start: datetime,
        end: datetime,
        resource_id: uuid.UUID | None = None,
    ) -> dict[uuid.UUID, list[TimeSlot]]:
        """Booked slots per resource that overlap [start, end], ordered by start."""
        start, end = as_utc(start), as_utc(end)
        if end < start:
            raise InvalidInputError("end must not be before start")
        resources = await self.store.list_resources(resource_id)
        if resource_id is not None and not resources:
            raise NotFoundError("Resource", resource_id)

        slots: dict[uuid.UUID, list[TimeSlot]] = {resource.id: [] for resource in resources}
        assignments = await self.store.list_assignments_between(start, end, resource_id=resource_id)
        for assignment in sorted(assignments, key=lambda a: a.start_time):
            if assignment.resource_id not in slots:
                continue
            if not windows_overlap(start, end, assignment.start_time, assignment.end_time):
                continue
            slots[assignment.resource_id].append(
                TimeSlot(
                    start_time=assignment.start_time,
                    end_time=assignment.end_time,
                    task_id=assignment.task_id,
                    allocation_percentage=assignment.allocation_percentage,
                )
            )
        return slots
