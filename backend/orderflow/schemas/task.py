"""Production task Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from orderflow.models.task import TaskStatus
from orderflow.schemas.scheduling import AssignmentResponse, ConflictResponse, UtcDatetime


class TaskCreate(BaseModel):
    """Schema for creating or replacing a production task."""

    order_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    task_type: str = Field(..., max_length=50)
    priority: int = Field(default=3, ge=1, le=5)
    estimated_duration: int = Field(default=0, ge=0, description="Minutes")
    planned_start: UtcDatetime
    planned_end: UtcDatetime
    predecessor_task_ids: str | None = Field(
        default=None, description="Comma-separated ids of tasks that must finish first"
    )
    notes: str | None = Field(default=None, max_length=500)
    user_id: int
    user_name: str = Field(..., max_length=100)

    @model_validator(mode="after")
    def _check_window(self) -> "TaskCreate":
        if self.planned_end < self.planned_start:
            raise ValueError("planned_end must not be before planned_start")
        return self


class TaskUpdate(TaskCreate):
    """Full replacement of a task's planning fields."""

    expected_version: int | None = Field(
        default=None, description="Reject the update if the task changed since this version"
    )


class TaskStatusUpdate(BaseModel):
    """Schema for a status/progress transition."""

    status: TaskStatus
    completion_percentage: int = Field(default=0, ge=0, le=100)
    user_id: int
    user_name: str = Field(..., max_length=100)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return TaskStatus(value)
            except ValueError:
                return value
        return value


class TaskResponse(BaseModel):
    """Schema for production task responses."""

    id: uuid.UUID
    order_id: uuid.UUID
    title: str
    description: str | None
    task_type: str
    priority: int
    status: str
    estimated_duration: int
    actual_duration: int | None
    planned_start: datetime
    planned_end: datetime
    actual_start: datetime | None
    actual_end: datetime | None
    predecessor_task_ids: str | None
    completion_percentage: int
    notes: str | None
    version: int
    created_at: datetime
    created_by_id: int
    created_by_name: str | None
    updated_at: datetime | None
    updated_by_id: int | None
    updated_by_name: str | None

    model_config = {"from_attributes": True}


class TaskDetailResponse(BaseModel):
    """A task together with its resource assignments."""

    task: TaskResponse
    resource_assignments: list[AssignmentResponse] = Field(default_factory=list)


class CalendarTask(BaseModel):
    """Compact task entry for the scheduling calendar."""

    id: uuid.UUID
    title: str
    order_id: uuid.UUID
    order_name: str | None
    start: datetime
    end: datetime
    status: str
    progress: int
    color: str
    resource_ids: list[uuid.UUID] = Field(default_factory=list)


class RescheduleResult(BaseModel):
    """Rescheduled task plus any over-allocation it now causes."""

    task: TaskResponse
    has_conflicts: bool
    conflicts: list[ConflictResponse] = Field(default_factory=list)
