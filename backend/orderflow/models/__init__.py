"""SQLAlchemy ORM models."""

from orderflow.models.assignment import TaskResourceAssignment
from orderflow.models.order import Order
from orderflow.models.resource import Resource, ResourceType
from orderflow.models.task import ProductionTask, TaskStatus

__all__ = [
    "Order",
    "ProductionTask",
    "Resource",
    "ResourceType",
    "TaskResourceAssignment",
    "TaskStatus",
]
