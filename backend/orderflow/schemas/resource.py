"""Resource Pydantic schemas."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from orderflow.models.resource import ResourceType

_WORKING_HOURS = re.compile(r"^([01]\d|2[0-3]):[0-5]\d-([01]\d|2[0-3]):[0-5]\d$")
_WEEKDAYS = {"monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"}


class ResourceCreate(BaseModel):
    """Schema for creating or replacing a resource."""

    name: str = Field(..., min_length=1, max_length=100)
    resource_type: ResourceType
    department: str | None = Field(default=None, max_length=100)
    capacity: float | None = Field(default=None, ge=0)
    cost_per_hour: float | None = Field(default=None, ge=0)
    capabilities: str | None = Field(default=None, max_length=500)
    is_active: bool = True
    working_hours: str | None = Field(default=None, max_length=50, examples=["08:00-16:00"])
    days_off: str | None = Field(default=None, max_length=100, examples=["Saturday,Sunday"])
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("working_hours")
    @classmethod
    def _check_working_hours(cls, value: str | None) -> str | None:
        if value and not _WORKING_HOURS.match(value.strip()):
            raise ValueError("working_hours must look like HH:MM-HH:MM")
        return value.strip() if value else value

    @field_validator("days_off")
    @classmethod
    def _check_days_off(cls, value: str | None) -> str | None:
        if not value:
            return value
        days = [day.strip() for day in value.split(",") if day.strip()]
        unknown = [day for day in days if day.lower() not in _WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s) in days_off: {', '.join(unknown)}")
        return ",".join(day.capitalize() for day in days)


class ResourceResponse(BaseModel):
    """Schema for resource responses."""

    id: uuid.UUID
    name: str
    resource_type: str
    department: str | None
    capacity: float | None
    cost_per_hour: float | None
    capabilities: str | None
    is_active: bool
    working_hours: str | None
    days_off: str | None
    notes: str | None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ResourceDeleteResult(BaseModel):
    """Outcome of a delete: removed outright or deactivated because it is assigned."""

    id: uuid.UUID
    deleted: bool
    deactivated: bool
