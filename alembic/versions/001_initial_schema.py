"""Initial schema — requests, catalog, vendors, automation rules, capacities, logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(200), unique=True, nullable=False),
        sa.Column("role", sa.String(30), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("vendor_id", sa.String(36), nullable=True),
    )
    op.create_index("idx_users_vendor", "users", ["vendor_id"])

    # Vendor profiles
    op.create_table(
        "vendor_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("pricing_agreements", JSONB, nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )

    # Services
    op.create_table(
        "services",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
    )

    # Service requests
    op.create_table(
        "service_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("service_id", sa.String(36), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("vendor_assignee_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("vendor_assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assignee_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("locked_assignment", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "auto_assignment_status", sa.String(30), nullable=False, server_default="not_attempted"
        ),
        sa.Column("last_automation_run_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_automation_note", sa.Text, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index(
        "idx_requests_vendor_service", "service_requests", ["vendor_assignee_id", "service_id"]
    )
    op.create_index(
        "idx_requests_assignee_service", "service_requests", ["assignee_id", "service_id"]
    )

    # Automation rules
    op.create_table(
        "automation_rules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("scope", sa.String(20), nullable=False, server_default="global"),
        sa.Column("owner_vendor_id", sa.String(36), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("service_ids", JSONB, nullable=True),
        sa.Column("match_criteria", JSONB, nullable=True),
        sa.Column("routing_target", sa.String(30), nullable=False, server_default="vendor_only"),
        sa.Column("routing_strategy", sa.String(30), nullable=True),
        sa.Column("allowed_vendor_ids", JSONB, nullable=True),
        sa.Column("excluded_vendor_ids", JSONB, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_rules_scope_active", "automation_rules", ["scope", "is_active"])

    # Vendor capacity per service
    op.create_table(
        "vendor_service_capacities",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "vendor_profile_id",
            sa.String(36),
            sa.ForeignKey("vendor_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.String(36),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("daily_capacity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("auto_assign_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("vendor_profile_id", "service_id", name="uq_vendor_service_capacity"),
        sa.CheckConstraint("daily_capacity >= 0", name="ck_vendor_capacity_non_negative"),
    )
    op.create_index("idx_vendor_capacities_service", "vendor_service_capacities", ["service_id"])

    # Designer capacity per service
    op.create_table(
        "vendor_designer_capacities",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "service_id",
            sa.String(36),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("daily_capacity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("auto_assign_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default="false"),
        sa.UniqueConstraint("user_id", "service_id", name="uq_designer_service_capacity"),
        sa.CheckConstraint("daily_capacity >= 0", name="ck_designer_capacity_non_negative"),
    )

    # Automation decision log
    op.create_table(
        "automation_assignment_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.String(36),
            sa.ForeignKey("service_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("request_type", sa.String(20), nullable=False, server_default="service"),
        sa.Column("rule_id", sa.String(36), nullable=True),
        sa.Column("step", sa.String(30), nullable=False),
        sa.Column("result", sa.String(30), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("chosen_id", sa.String(36), nullable=True),
        sa.Column("candidates_considered", JSONB, nullable=True),
        sa.Column("capacity_snapshot", JSONB, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_automation_logs_request", "automation_assignment_logs", ["request_id"])


def downgrade() -> None:
    op.drop_table("automation_assignment_logs")
    op.drop_table("vendor_designer_capacities")
    op.drop_table("vendor_service_capacities")
    op.drop_table("automation_rules")
    op.drop_table("service_requests")
    op.drop_table("services")
    op.drop_table("vendor_profiles")
    op.drop_table("users")
