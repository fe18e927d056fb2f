"""Pydantic v2 schemas for request/response validation."""

from orderflow.schemas.order import OrderCreate, OrderResponse
from orderflow.schemas.resource import ResourceCreate, ResourceDeleteResult, ResourceResponse
from orderflow.schemas.scheduling import (
    AssignmentResponse,
    AssignResourceRequest,
    AssignResourceResult,
    ConflictReport,
    ConflictResponse,
    DailyLoad,
    RescheduleRequest,
    ResourceLoadResponse,
    TimeSlotResponse,
)
from orderflow.schemas.task import (
    CalendarTask,
    RescheduleResult,
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)

__all__ = [
    "AssignmentResponse",
    "AssignResourceRequest",
    "AssignResourceResult",
    "CalendarTask",
    "ConflictReport",
    "ConflictResponse",
    "DailyLoad",
    "OrderCreate",
    "OrderResponse",
    "RescheduleRequest",
    "RescheduleResult",
    "ResourceCreate",
    "ResourceDeleteResult",
    "ResourceLoadResponse",
    "ResourceResponse",
    "TaskCreate",
    "TaskDetailResponse",
    "TaskResponse",
    "TaskStatusUpdate",
    "TaskUpdate",
    "TimeSlotResponse",
]
