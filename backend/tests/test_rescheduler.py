"""Tests for moving tasks and their assignments in time."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from orderflow.schemas.scheduling import RescheduleRequest
from orderflow.services.exceptions import ConcurrencyConflictError, NotFoundError
from orderflow.services.rescheduler import Rescheduler


def ts(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2023, 1, day, hour, minute, tzinfo=timezone.utc)


class TestRescheduleTask:
    @pytest.mark.asyncio
    async def test_moves_task_and_assignment_by_same_delta(self, store, actor):
        task = store.add_task(ts(16, 8), ts(16, 10))
        cnc = store.add_resource()
        assignment = store.add_assignment(task, cnc, ts(16, 8), ts(16, 10))

        outcome = await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

        assert outcome.task.planned_start == ts(17, 9)
        assert outcome.task.planned_end == ts(17, 11)
        assert assignment.start_time == ts(17, 9)
        assert assignment.end_time == ts(17, 11)
        assert outcome.has_conflicts is False

    @pytest.mark.asyncio
    async def test_offsets_and_durations_are_preserved(self, store, actor):
        task = store.add_task(ts(16, 8), ts(16, 16))
        cnc = store.add_resource("CNC-01")
        lee = store.add_resource("Operator Lee")
        late = store.add_assignment(task, cnc, ts(16, 10), ts(16, 12, 30))
        early = store.add_assignment(task, lee, ts(16, 8), ts(16, 9), 50)

        await Rescheduler(store).reschedule_task(task.id, ts(16, 13, 15), actor)

        assert late.start_time == ts(16, 15, 15)
        assert late.end_time - late.start_time == timedelta(hours=2, minutes=30)
        assert early.start_time == ts(16, 13, 15)
        assert early.end_time == ts(16, 14, 15)
        assert task.planned_end - task.planned_start == timedelta(hours=8)

    @pytest.mark.asyncio
    async def test_moving_earlier(self, store, actor):
        task = store.add_task(ts(17, 9), ts(17, 11))
        cnc = store.add_resource()
        assignment = store.add_assignment(task, cnc, ts(17, 9), ts(17, 11))

        await Rescheduler(store).reschedule_task(task.id, ts(16, 7), actor)

        assert assignment.start_time == ts(16, 7)
        assert assignment.end_time == ts(16, 9)

    @pytest.mark.asyncio
    async def test_stamps_audit_fields(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11))

        await Rescheduler(store).reschedule_task(task.id, ts(18, 9), actor)

        assert task.updated_by_id == actor.user_id
        assert task.updated_by_name == actor.user_name
        assert task.updated_at is not None

    @pytest.mark.asyncio
    async def test_only_this_tasks_assignments_move(self, store, actor):
        cnc = store.add_resource()
        task = store.add_task(ts(16, 9), ts(16, 11))
        other = store.add_task(ts(16, 9), ts(16, 11))
        store.add_assignment(task, cnc, ts(16, 9), ts(16, 11), 50)
        untouched = store.add_assignment(other, cnc, ts(16, 9), ts(16, 11), 50)

        await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

        assert untouched.start_time == ts(16, 9)

    @pytest.mark.asyncio
    async def test_reports_conflicts_at_new_position(self, store, actor):
        cnc = store.add_resource()
        busy = store.add_task(ts(17, 8), ts(17, 12))
        store.add_assignment(busy, cnc, ts(17, 8), ts(17, 12), 100)
        task = store.add_task(ts(16, 9), ts(16, 11))
        store.add_assignment(task, cnc, ts(16, 9), ts(16, 11), 100)

        outcome = await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

        assert outcome.has_conflicts is True
        assert outcome.conflicts[0].conflicting_task_id == busy.id
        assert outcome.conflicts[0].start_time == ts(17, 9)
        assert outcome.conflicts[0].end_time == ts(17, 11)

    @pytest.mark.asyncio
    async def test_unknown_task(self, store, actor):
        with pytest.raises(NotFoundError):
            await Rescheduler(store).reschedule_task(uuid.uuid4(), ts(17, 9), actor)

    @pytest.mark.asyncio
    async def test_version_mismatch_rejected_without_changes(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11), version=3)
        cnc = store.add_resource()
        assignment = store.add_assignment(task, cnc, ts(16, 9), ts(16, 11))

        with pytest.raises(ConcurrencyConflictError):
            await Rescheduler(store).reschedule_task(
                task.id, ts(17, 9), actor, expected_version=2
            )

        assert task.planned_start == ts(16, 9)
        assert assignment.start_time == ts(16, 9)

    @pytest.mark.asyncio
    async def test_matching_version_accepted(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11), version=3)

        outcome = await Rescheduler(store).reschedule_task(
            task.id, ts(17, 9), actor, expected_version=3
        )

        assert outcome.task.planned_start == ts(17, 9)

    @pytest.mark.asyncio
    async def test_stale_flush_propagates(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11))
        store.fail_on_flush = ConcurrencyConflictError("stale")

        with pytest.raises(ConcurrencyConflictError):
            await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

    @pytest.mark.asyncio
    async def test_single_flush_for_task_and_assignments(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11))
        for name in ("CNC-01", "Press-02", "Operator Lee"):
            store.add_assignment(task, store.add_resource(name), ts(16, 9), ts(16, 11), 30)

        await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

        assert store.flush_count == 1

    @pytest.mark.asyncio
    async def test_assignments_loaded_before_task_is_changed(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11))
        starts_seen = []
        list_for_task = store.list_assignments_for_task

        async def recording_list(task_id):
            starts_seen.append(task.planned_start)
            return await list_for_task(task_id)

        store.list_assignments_for_task = recording_list

        await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

        assert starts_seen[0] == ts(16, 9)

    @pytest.mark.asyncio
    async def test_stale_row_while_loading_assignments_propagates(self, store, actor):
        task = store.add_task(ts(16, 9), ts(16, 11))

        async def stale_list(task_id):
            raise ConcurrencyConflictError("stale")

        store.list_assignments_for_task = stale_list

        with pytest.raises(ConcurrencyConflictError):
            await Rescheduler(store).reschedule_task(task.id, ts(17, 9), actor)

        assert task.planned_start == ts(16, 9)


class TestTimestampsWithoutOffset:
    @pytest.mark.asyncio
    async def test_request_without_offset_is_read_as_utc(self, store, actor):
        task = store.add_task(ts(16, 8), ts(16, 10))
        cnc = store.add_resource()
        assignment = store.add_assignment(task, cnc, ts(16, 8), ts(16, 10))
        request = RescheduleRequest.model_validate(
            {
                "task_id": str(task.id),
                "new_start_date": "2023-01-17T09:00:00",
                "user_id": actor.user_id,
                "user_name": actor.user_name,
            }
        )

        outcome = await Rescheduler(store).reschedule_task(
            request.task_id, request.new_start_date, actor
        )

        assert outcome.task.planned_start == ts(17, 9)
        assert outcome.task.planned_end == ts(17, 11)
        assert assignment.start_time == ts(17, 9)

    @pytest.mark.asyncio
    async def test_service_accepts_start_without_offset(self, store, actor):
        task = store.add_task(ts(16, 8), ts(16, 10))

        outcome = await Rescheduler(store).reschedule_task(
            task.id, datetime(2023, 1, 17, 9), actor
        )

        assert outcome.task.planned_start == ts(17, 9)
        assert outcome.task.planned_start.tzinfo is not None
