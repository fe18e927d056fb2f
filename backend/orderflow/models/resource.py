"""Resource SQLAlchemy model."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderflow.core.database import Base


class ResourceType(str, enum.Enum):
    MACHINE = "Machine"
    PERSON = "Person"
    TOOL = "Tool"
    LINE = "Line"


class Resource(Base):
    """A machine, person, tool or line that tasks are assigned to."""

    __tablename__ = "resources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    capacity: Mapped[float | None] = mapped_column(
        Float, nullable=True, comment="Units per hour"
    )
    cost_per_hour: Mapped[float | None] = mapped_column(Float, nullable=True)
    capabilities: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    working_hours: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="E.g. 08:00-16:00"
    )
    days_off: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="E.g. Saturday,Sunday"
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    assignments: Mapped[list["TaskResourceAssignment"]] = relationship(
        back_populates="resource", passive_deletes=True
    )

    __mapper_args__ = {"version_id_col": version}
