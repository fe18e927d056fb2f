"""Request/response schemas for assignment, rescheduling and availability."""

import uuid
from datetime import date, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, model_validator

from orderflow.services.conflict_detector import as_utc

# Request timestamps without an offset are read as UTC.
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class AssignResourceRequest(BaseModel):
    """Assign a resource to a task (or update the existing pair)."""

    task_id: uuid.UUID
    resource_id: uuid.UUID
    start_time: UtcDatetime
    end_time: UtcDatetime
    allocation_percentage: float = Field(default=100.0, ge=0, le=100)
    notes: str | None = Field(default=None, max_length=500)
    user_id: int
    user_name: str = Field(..., max_length=100)

    @model_validator(mode="after")
    def _check_window(self) -> "AssignResourceRequest":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class RescheduleRequest(BaseModel):
    """Move a task (and its assignments) to a new start."""

    task_id: uuid.UUID
    new_start_date: UtcDatetime
    user_id: int
    user_name: str = Field(..., max_length=100)
    expected_version: int | None = None


class AssignmentResponse(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    resource_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    allocation_percentage: float
    notes: str | None
    version: int
    created_at: datetime
    created_by_id: int
    created_by_name: str | None

    model_config = {"from_attributes": True}


class ConflictResponse(BaseModel):
    """Advisory over-allocation between two tasks on one resource."""

    resource_id: uuid.UUID
    resource_name: str | None
    task_id: uuid.UUID
    conflicting_task_id: uuid.UUID
    conflicting_task_title: str | None
    start_time: datetime
    end_time: datetime
    total_allocation: float

    model_config = {"from_attributes": True}


class ConflictReport(BaseModel):
    task_id: uuid.UUID
    has_conflicts: bool
    conflicts: list[ConflictResponse] = Field(default_factory=list)


class AssignResourceResult(BaseModel):
    assignment: AssignmentResponse
    created: bool
    has_conflicts: bool
    conflicts: list[ConflictResponse] = Field(default_factory=list)


class TimeSlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    task_id: uuid.UUID
    allocation_percentage: float

    model_config = {"from_attributes": True}


class DailyLoad(BaseModel):
    day: date
    load: float = Field(description="Committed hours / nominal workday, weighted by allocation")


class ResourceLoadResponse(BaseModel):
    resource_id: uuid.UUID
    capped: bool
    days: list[DailyLoad] = Field(default_factory=list)
