"""ProductionTask SQLAlchemy model and task status enumeration."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderflow.core.database import Base


class TaskStatus(str, enum.Enum):
    """Closed set of task states. Parsing ignores case."""

    PLANNED = "Planned"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    ON_HOLD = "OnHold"
    CANCELLED = "Cancelled"

    @classmethod
    def _missing_(cls, value: object) -> "TaskStatus | None":
        if isinstance(value, str):
            wanted = value.replace("_", "").replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None


class ProductionTask(Base):
    """A unit of production work on an order, scheduled over a planned window."""

    __tablename__ = "production_tasks"
    __table_args__ = (
        CheckConstraint("planned_end >= planned_start", name="ck_task_planned_window"),
        CheckConstraint("priority BETWEEN 1 AND 5", name="ck_task_priority"),
        CheckConstraint(
            "completion_percentage BETWEEN 0 AND 100", name="ck_task_completion"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    task_type: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Preparation, Production, Assembly, Testing, Packaging"
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, server_default="3")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=TaskStatus.PLANNED.value, index=True
    )
    estimated_duration: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="0", comment="Minutes"
    )
    actual_duration: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Minutes, set on completion"
    )
    planned_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    planned_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    actual_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    predecessor_task_ids: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Comma-separated task ids that must finish first"
    )
    completion_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="0"
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    created_by_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    order: Mapped["Order"] = relationship(back_populates="tasks")
    assignments: Mapped[list["TaskResourceAssignment"]] = relationship(
        back_populates="task", cascade="all, delete-orphan", passive_deletes=True
    )

    __mapper_args__ = {"version_id_col": version}
