"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoassign.adapters.persistence.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="client")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Designers point at their parent vendor's user id
    vendor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    __table_args__ = (Index("idx_users_vendor", "vendor_id"),)


class VendorProfileModel(Base):
    __tablename__ = "vendor_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    pricing_agreements: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    capacities: Mapped[list["VendorServiceCapacityModel"]] = relationship(
        back_populates="vendor_profile"
    )


class ServiceModel(Base):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)


class ServiceRequestModel(Base):
    __tablename__ = "service_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    service_id: Mapped[str] = mapped_column(String(36), ForeignKey("services.id"), nullable=False)
    vendor_assignee_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    vendor_assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    assignee_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")
    locked_assignment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_assignment_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="not_attempted"
    )
    last_automation_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_automation_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    logs: Mapped[list["AutomationAssignmentLogModel"]] = relationship(back_populates="request")

    __table_args__ = (
        Index("idx_requests_vendor_service", "vendor_assignee_id", "service_id"),
        Index("idx_requests_assignee_service", "assignee_id", "service_id"),
    )


class AutomationRuleModel(Base):
    __tablename__ = "automation_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    scope: Mapped[str] = mapped_column(String(20), nullable=False, default="global")
    owner_vendor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    service_ids: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    match_criteria: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    routing_target: Mapped[str] = mapped_column(String(30), nullable=False, default="vendor_only")
    routing_strategy: Mapped[str | None] = mapped_column(String(30), nullable=True)
    allowed_vendor_ids: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    excluded_vendor_ids: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_rules_scope_active", "scope", "is_active"),)


class VendorServiceCapacityModel(Base):
    __tablename__ = "vendor_service_capacities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    vendor_profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vendor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    daily_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    auto_assign_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    vendor_profile: Mapped["VendorProfileModel"] = relationship(back_populates="capacities")

    __table_args__ = (
        UniqueConstraint("vendor_profile_id", "service_id", name="uq_vendor_service_capacity"),
        CheckConstraint("daily_capacity >= 0", name="ck_vendor_capacity_non_negative"),
        Index("idx_vendor_capacities_service", "service_id"),
    )


class VendorDesignerCapacityModel(Base):
    __tablename__ = "vendor_designer_capacities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    daily_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    auto_assign_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("user_id", "service_id", name="uq_designer_service_capacity"),
        CheckConstraint("daily_capacity >= 0", name="ck_designer_capacity_non_negative"),
    )


class AutomationAssignmentLogModel(Base):
    __tablename__ = "automation_assignment_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False
    )
    request_type: Mapped[str] = mapped_column(String(20), nullable=False, default="service")
    rule_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    step: Mapped[str] = mapped_column(String(30), nullable=False)
    result: Mapped[str] = mapped_column(String(30), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    chosen_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    candidates_considered: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    capacity_snapshot: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    request: Mapped["ServiceRequestModel"] = relationship(back_populates="logs")

    __table_args__ = (Index("idx_automation_logs_request", "request_id"),)
