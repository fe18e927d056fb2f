"""TaskResourceAssignment SQLAlchemy model."""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderflow.core.database import Base


class TaskResourceAssignment(Base):
    """Commitment of a resource to a task for a window at a share of its capacity."""

    __tablename__ = "task_resource_assignments"
    __table_args__ = (
        UniqueConstraint("task_id", "resource_id", name="uq_assignment_task_resource"),
        CheckConstraint("end_time >= start_time", name="ck_assignment_window"),
        CheckConstraint(
            "allocation_percentage >= 0 AND allocation_percentage <= 100",
            name="ck_assignment_allocation",
        ),
        Index("ix_assignments_resource_window", "resource_id", "start_time", "end_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("production_tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    allocation_percentage: Mapped[float] = mapped_column(
        Float, nullable=False, server_default="100"
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    created_by_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    task: Mapped["ProductionTask"] = relationship(back_populates="assignments")
    resource: Mapped["Resource"] = relationship(back_populates="assignments")

    __mapper_args__ = {"version_id_col": version}
