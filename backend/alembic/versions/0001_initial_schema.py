"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the investment event calendar:
users, companies, user_company_order, events, event_companies,
event_hosts, user_event_responses.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

location_type = sa.Enum("physical", "virtual", "hybrid", name="locationtype")
event_type = sa.Enum("standard", "catalyst", name="eventtype")
host_type = sa.Enum("single_corp", "multi_corp", "non_company", name="hosttype")
response_status = sa.Enum("pending", "accepted", "declined", name="responsestatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("default_timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- companies ---
    op.create_table(
        "companies",
        sa.Column("company_id", sa.String(36), primary_key=True),
        sa.Column("ticker_symbol", sa.String(20), nullable=False, unique=True),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("gics_sector", sa.String(100), nullable=False, server_default=""),
        sa.Column("gics_subsector", sa.String(100), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- user_company_order ---
    op.create_table(
        "user_company_order",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.company_id"), nullable=False),
        sa.Column("display_order", sa.Integer, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "company_id", name="uq_user_company_order"),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location_type", location_type, nullable=False, server_default="virtual"),
        sa.Column("location_details", sa.JSON, nullable=True),
        sa.Column("virtual_details", sa.JSON, nullable=True),
        sa.Column("event_type", event_type, nullable=False, server_default="standard"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_events_start_end", "events", ["start_date", "end_date"])

    # --- event_companies ---
    op.create_table(
        "event_companies",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.company_id"), primary_key=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )

    # --- event_hosts ---
    op.create_table(
        "event_hosts",
        sa.Column("host_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("host_type", host_type, nullable=False),
        sa.Column("host_company_id", sa.String(36), sa.ForeignKey("companies.company_id"), nullable=True),
        sa.Column("co_hosts", sa.JSON, nullable=True),
        sa.Column("organization_name", sa.String(255), nullable=True),
        sa.Column("sector", sa.String(100), nullable=True),
    )

    # --- user_event_responses ---
    op.create_table(
        "user_event_responses",
        sa.Column("response_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("status", response_status, nullable=False, server_default="pending"),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "event_id", name="uq_user_event_response"),
    )


def downgrade() -> None:
    op.drop_table("user_event_responses")
    op.drop_table("event_hosts")
    op.drop_table("event_companies")
    op.drop_index("ix_events_start_end", table_name="events")
    op.drop_table("events")
    op.drop_table("user_company_order")
    op.drop_table("companies")
    op.drop_table("users")
