"""Tests for task status transitions and predecessor parsing."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from orderflow.models.task import TaskStatus
from orderflow.services.exceptions import InvalidInputError, NotFoundError
from orderflow.services.task_lifecycle import (
    apply_status_change,
    change_status,
    parse_predecessor_ids,
    parse_status,
    resolve_predecessors,
    status_color,
    validate_transition,
)

START = datetime(2023, 1, 16, 9, 0, tzinfo=timezone.utc)


class TestParseStatus:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Planned", TaskStatus.PLANNED),
            ("inprogress", TaskStatus.IN_PROGRESS),
            ("IN_PROGRESS", TaskStatus.IN_PROGRESS),
            ("on hold", TaskStatus.ON_HOLD),
            ("CANCELLED", TaskStatus.CANCELLED),
        ],
    )
    def test_case_insensitive(self, raw, expected):
        assert parse_status(raw) is expected

    def test_unknown_status(self):
        with pytest.raises(InvalidInputError):
            parse_status("Archived")

    def test_status_color_falls_back_to_planned(self):
        assert status_color("Completed") == "#2ecc71"
        assert status_color("garbage") == status_color("Planned")


class TestTransitions:
    @pytest.mark.parametrize(
        "current, target",
        [
            (TaskStatus.PLANNED, TaskStatus.IN_PROGRESS),
            (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
            (TaskStatus.IN_PROGRESS, TaskStatus.ON_HOLD),
            (TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED),
            (TaskStatus.ON_HOLD, TaskStatus.IN_PROGRESS),
            (TaskStatus.IN_PROGRESS, TaskStatus.IN_PROGRESS),
        ],
    )
    def test_allowed(self, current, target):
        validate_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (TaskStatus.PLANNED, TaskStatus.COMPLETED),
            (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS),
            (TaskStatus.CANCELLED, TaskStatus.PLANNED),
            (TaskStatus.ON_HOLD, TaskStatus.COMPLETED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidInputError):
            validate_transition(current, target)


class TestApplyStatusChange:
    def test_start_stamps_actual_start(self, store, actor):
        task = store.add_task(START, START + timedelta(hours=2))

        apply_status_change(task, TaskStatus.IN_PROGRESS, 10, actor, now=START)

        assert task.status == "InProgress"
        assert task.actual_start == START
        assert task.completion_percentage == 10
        assert task.updated_by_id == actor.user_id

    def test_resume_keeps_original_actual_start(self, store, actor):
        task = store.add_task(
            START, START + timedelta(hours=2), status="OnHold", actual_start=START
        )

        apply_status_change(
            task, TaskStatus.IN_PROGRESS, 50, actor, now=START + timedelta(hours=1)
        )

        assert task.actual_start == START

    def test_complete_records_duration(self, store, actor):
        task = store.add_task(
            START, START + timedelta(hours=2), status="InProgress", actual_start=START
        )

        apply_status_change(
            task,
            TaskStatus.COMPLETED,
            80,
            actor,
            now=START + timedelta(minutes=95, seconds=40),
        )

        assert task.actual_end == START + timedelta(minutes=95, seconds=40)
        assert task.actual_duration == 96
        assert task.completion_percentage == 100

    def test_completion_out_of_range(self, store, actor):
        task = store.add_task(START, START + timedelta(hours=2))
        with pytest.raises(InvalidInputError):
            apply_status_change(task, TaskStatus.IN_PROGRESS, 101, actor)

    @pytest.mark.asyncio
    async def test_change_status_saves(self, store, actor):
        task = store.add_task(START, START + timedelta(hours=2))

        result = await change_status(store, task.id, TaskStatus.IN_PROGRESS, 5, actor)

        assert result.status == "InProgress"
        assert store.flush_count == 1

    @pytest.mark.asyncio
    async def test_change_status_unknown_task(self, store, actor):
        with pytest.raises(NotFoundError):
            await change_status(store, uuid.uuid4(), TaskStatus.IN_PROGRESS, 0, actor)


class TestPredecessors:
    def test_empty(self):
        assert parse_predecessor_ids(None) == []
        assert parse_predecessor_ids("") == []

    def test_blanks_and_duplicates_ignored(self):
        first, second = uuid.uuid4(), uuid.uuid4()
        text = f" {first}, ,{second},{first} "
        assert parse_predecessor_ids(text) == [first, second]

    def test_malformed_id(self):
        with pytest.raises(InvalidInputError):
            parse_predecessor_ids("not-a-uuid")

    def test_self_reference(self):
        task_id = uuid.uuid4()
        with pytest.raises(InvalidInputError):
            parse_predecessor_ids(str(task_id), task_id)

    @pytest.mark.asyncio
    async def test_resolve_normalizes(self, store):
        first = store.add_task(START, START)
        second = store.add_task(START, START)

        result = await resolve_predecessors(store, f"{first.id} ,{second.id},{first.id}")

        assert result == f"{first.id},{second.id}"

    @pytest.mark.asyncio
    async def test_resolve_unknown_task(self, store):
        with pytest.raises(NotFoundError):
            await resolve_predecessors(store, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_resolve_empty(self, store):
        assert await resolve_predecessors(store, "  ") is None
