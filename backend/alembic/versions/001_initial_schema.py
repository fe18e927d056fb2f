"""Initial scheduling schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create orders, tasks, resources and assignments."""
    # --- orders ---
    op.create_table(
        "orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("order_no", sa.String(50), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(50), server_default="New", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_no"),
    )

    # --- production_tasks ---
    op.create_table(
        "production_tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("task_type", sa.String(50), nullable=False, comment="Preparation, Production, Assembly, Testing, Packaging"),
        sa.Column("priority", sa.Integer(), server_default="3", nullable=False),
        sa.Column("status", sa.String(20), server_default="Planned", nullable=False),
        sa.Column("estimated_duration", sa.Integer(), server_default="0", nullable=False, comment="Minutes"),
        sa.Column("actual_duration", sa.Integer(), nullable=True, comment="Minutes, set on completion"),
        sa.Column("planned_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("planned_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actual_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("predecessor_task_ids", sa.Text(), nullable=True, comment="Comma-separated task ids that must finish first"),
        sa.Column("completion_percentage", sa.Integer(), server_default="0", nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("created_by_name", sa.String(100), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("updated_by_name", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.CheckConstraint("planned_end >= planned_start", name="ck_task_planned_window"),
        sa.CheckConstraint("priority BETWEEN 1 AND 5", name="ck_task_priority"),
        sa.CheckConstraint("completion_percentage BETWEEN 0 AND 100", name="ck_task_completion"),
    )
    op.create_index("ix_production_tasks_order_id", "production_tasks", ["order_id"])
    op.create_index("ix_production_tasks_status", "production_tasks", ["status"])

    # --- resources ---
    op.create_table(
        "resources",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("capacity", sa.Float(), nullable=True, comment="Units per hour"),
        sa.Column("cost_per_hour", sa.Float(), nullable=True),
        sa.Column("capabilities", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("working_hours", sa.String(50), nullable=True, comment="E.g. 08:00-16:00"),
        sa.Column("days_off", sa.String(100), nullable=True, comment="E.g. Saturday,Sunday"),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_resources_resource_type", "resources", ["resource_type"])
    op.create_index("ix_resources_department", "resources", ["department"])

    # --- task_resource_assignments ---
    op.create_table(
        "task_resource_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("task_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("allocation_percentage", sa.Float(), server_default="100", nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("created_by_name", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["task_id"], ["production_tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["resource_id"], ["resources.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("task_id", "resource_id", name="uq_assignment_task_resource"),
        sa.CheckConstraint("end_time >= start_time", name="ck_assignment_window"),
        sa.CheckConstraint(
            "allocation_percentage >= 0 AND allocation_percentage <= 100",
            name="ck_assignment_allocation",
        ),
    )
    op.create_index("ix_task_resource_assignments_task_id", "task_resource_assignments", ["task_id"])
    op.create_index(
        "ix_assignments_resource_window",
        "task_resource_assignments",
        ["resource_id", "start_time", "end_time"],
    )


def downgrade() -> None:
    """Drop all scheduling tables."""
    op.drop_index("ix_assignments_resource_window", "task_resource_assignments")
    op.drop_index("ix_task_resource_assignments_task_id", "task_resource_assignments")
    op.drop_table("task_resource_assignments")
    op.drop_index("ix_resources_department", "resources")
    op.drop_index("ix_resources_resource_type", "resources")
    op.drop_table("resources")
    op.drop_index("ix_production_tasks_status", "production_tasks")
    op.drop_index("ix_production_tasks_order_id", "production_tasks")
    op.drop_table("production_tasks")
    op.drop_table("orders")
