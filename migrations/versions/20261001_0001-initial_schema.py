"""Initial Coachboard schema

Users, businesses and team membership, forecasts with P&L lines,
messaging, coaching sessions, notifications and the audit log.

Revision ID: c0a1b2c3d4e5
Revises:
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = "c0a1b2c3d4e5"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True):
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("system_role", sa.String(), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("invite_token", sa.String(), nullable=True),
        sa.Column("invite_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_token", sa.String(), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_invite_token", "users", ["invite_token"])
    op.create_index("ix_users_password_reset_token", "users", ["password_reset_token"])

    # Businesses
    op.create_table(
        "businesses",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("assigned_coach_id", sa.String(), nullable=True),
        sa.Column("industry", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_coach_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_businesses_owner_id", "businesses", ["owner_id"])
    op.create_index("ix_businesses_assigned_coach_id", "businesses", ["assigned_coach_id"])

    op.create_table(
        "business_profiles",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("industry", sa.String(), nullable=True),
        sa.Column("annual_revenue", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("employee_count", sa.Integer(), nullable=True),
        sa.Column("founded_date", sa.Date(), nullable=True),
        sa.Column("website", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id"),
    )

    op.create_table(
        "business_users",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("position", sa.String(), nullable=True),
        sa.Column("invited_by", sa.String(), nullable=True),
        sa.Column("invited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("section_permissions", JSONB, nullable=False, server_default="{}"),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "user_id", name="uq_business_users_business_user"),
    )
    op.create_index("ix_business_users_business_id", "business_users", ["business_id"])
    op.create_index("ix_business_users_user_id", "business_users", ["user_id"])

    op.create_table(
        "business_financial_goals",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("year_type", sa.String(), nullable=False, server_default="FY"),
        sa.Column("revenue_year1", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("revenue_year2", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("revenue_year3", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("gross_profit_year1", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("gross_profit_year2", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("gross_profit_year3", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("net_profit_year1", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("net_profit_year2", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("net_profit_year3", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("headcount_target", sa.Integer(), nullable=True),
        sa.Column("key_objectives", JSONB, nullable=False, server_default="[]"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id"),
    )

    # Forecasts
    op.create_table(
        "financial_forecasts",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("fiscal_year", sa.Integer(), nullable=False),
        sa.Column("year_type", sa.String(), nullable=False, server_default="FY"),
        sa.Column("currency", sa.String(), nullable=False, server_default="AUD"),
        sa.Column("baseline_start_month", sa.String(), nullable=True),
        sa.Column("baseline_end_month", sa.String(), nullable=True),
        sa.Column("actual_start_month", sa.String(), nullable=False),
        sa.Column("actual_end_month", sa.String(), nullable=False),
        sa.Column("forecast_start_month", sa.String(), nullable=False),
        sa.Column("forecast_end_month", sa.String(), nullable=False),
        sa.Column("forecast_type", sa.String(), nullable=False, server_default="forecast"),
        sa.Column("version_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked_by", sa.String(), nullable=True),
        sa.Column("parent_forecast_id", sa.String(), nullable=True),
        sa.Column("version_notes", sa.Text(), nullable=True),
        sa.Column("revenue_goal", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("gross_profit_goal", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("net_profit_goal", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["parent_forecast_id"], ["financial_forecasts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_financial_forecasts_business_id", "financial_forecasts", ["business_id"])
    op.create_index("ix_forecasts_business_year", "financial_forecasts", ["business_id", "fiscal_year"])

    op.create_table(
        "forecast_pl_lines",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("forecast_id", sa.String(), nullable=False),
        sa.Column("account_code", sa.String(), nullable=True),
        sa.Column("account_name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("subcategory", sa.String(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actual_months", JSONB, nullable=False, server_default="{}"),
        sa.Column("forecast_months", JSONB, nullable=False, server_default="{}"),
        sa.Column("is_from_xero", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_manual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["forecast_id"], ["financial_forecasts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forecast_pl_lines_forecast_id", "forecast_pl_lines", ["forecast_id"])

    op.create_table(
        "forecast_employees",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("forecast_id", sa.String(), nullable=False),
        sa.Column("employee_name", sa.String(), nullable=False),
        sa.Column("position", sa.String(), nullable=True),
        sa.Column("classification", sa.String(), nullable=False, server_default="opex"),
        sa.Column("annual_salary", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("start_month", sa.String(), nullable=True),
        sa.Column("end_month", sa.String(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["forecast_id"], ["financial_forecasts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forecast_employees_forecast_id", "forecast_employees", ["forecast_id"])

    op.create_table(
        "forecast_scenarios",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("forecast_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("scenario_type", sa.String(), nullable=False, server_default="planning"),
        sa.Column("revenue_multiplier", sa.Numeric(precision=8, scale=4), nullable=False, server_default="1"),
        sa.Column("cogs_multiplier", sa.Numeric(precision=8, scale=4), nullable=False, server_default="1"),
        sa.Column("opex_multiplier", sa.Numeric(precision=8, scale=4), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_baseline", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["forecast_id"], ["financial_forecasts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forecast_scenarios_forecast_id", "forecast_scenarios", ["forecast_id"])

    op.create_table(
        "forecast_decisions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("forecast_id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("decision_type", sa.String(), nullable=False),
        sa.Column("decision_data", JSONB, nullable=False, server_default="{}"),
        sa.Column("user_reasoning", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["forecast_id"], ["financial_forecasts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forecast_decisions_forecast_id", "forecast_decisions", ["forecast_id"])

    # Messaging
    op.create_table(
        "messages",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("sender_id", sa.String(), nullable=True),
        sa.Column("sender_type", sa.String(), nullable=False),
        sa.Column("recipient_id", sa.String(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attachment_url", sa.String(), nullable=True),
        sa.Column("attachment_name", sa.String(), nullable=True),
        sa.Column("attachment_size", sa.Integer(), nullable=True),
        sa.Column("attachment_type", sa.String(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_messages_recipient_id", "messages", ["recipient_id"])
    op.create_index("ix_messages_business_created", "messages", ["business_id", "created_at"])

    op.create_table(
        "shared_documents",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("uploaded_by", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("file_url", sa.String(), nullable=False),
        sa.Column("file_type", sa.String(), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("folder", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shared_documents_business_id", "shared_documents", ["business_id"])

    # Coaching
    op.create_table(
        "coaching_sessions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("coach_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        sa.Column("meeting_url", sa.String(), nullable=True),
        sa.Column("agenda", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["coach_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_coaching_sessions_business_id", "coaching_sessions", ["business_id"])
    op.create_index("ix_coaching_sessions_coach_id", "coaching_sessions", ["coach_id"])
    op.create_index("ix_coaching_sessions_scheduled_at", "coaching_sessions", ["scheduled_at"])

    op.create_table(
        "session_actions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.String(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_id"], ["coaching_sessions.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_session_actions_business_id", "session_actions", ["business_id"])

    op.create_table(
        "coach_questions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("coach_id", sa.String(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("category", sa.String(), nullable=False, server_default="discovery"),
        sa.Column("subcategory", sa.String(), nullable=True),
        sa.Column("is_template", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("use_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["coach_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_coach_questions_coach_id", "coach_questions", ["coach_id"])

    # Notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("link", sa.String(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "read"])

    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("notification_type", sa.String(), nullable=False),
        sa.Column("in_app_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "notification_type", name="uq_notification_pref_user_type"),
    )

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("business_id", sa.String(), nullable=True),
        sa.Column("forecast_id", sa.String(), nullable=True),
        sa.Column("table_name", sa.String(), nullable=False),
        sa.Column("record_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("field_name", sa.String(), nullable=True),
        sa.Column("old_value", JSONB, nullable=True),
        sa.Column("new_value", JSONB, nullable=True),
        sa.Column("changes", JSONB, nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("user_email", sa.String(), nullable=True),
        sa.Column("source", sa.String(), nullable=False, server_default="api"),
        sa.Column("ip_address", sa.String(), nullable=True),
        sa.Column("user_agent", sa.String(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_business_id", "audit_logs", ["business_id"])
    op.create_index("ix_audit_logs_forecast_id", "audit_logs", ["forecast_id"])
    op.create_index("ix_audit_logs_table_name", "audit_logs", ["table_name"])
    op.create_index("ix_audit_logs_record_id", "audit_logs", ["record_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_log_record", "audit_logs", ["table_name", "record_id"])
    op.create_index("ix_audit_log_business_time", "audit_logs", ["business_id", "created_at"])
    op.create_index("ix_audit_log_forecast_time", "audit_logs", ["forecast_id", "created_at"])


def downgrade() -> None:
    # Drop in reverse dependency order; indexes go with their tables
    for table in (
        "audit_logs",
        "notification_preferences",
        "notifications",
        "coach_questions",
        "session_actions",
        "coaching_sessions",
        "shared_documents",
        "messages",
        "forecast_decisions",
        "forecast_scenarios",
        "forecast_employees",
        "forecast_pl_lines",
        "financial_forecasts",
        "business_financial_goals",
        "business_users",
        "business_profiles",
        "businesses",
        "users",
    ):
        op.drop_table(table)
