"""Initial schema: users, teams, computers, blackouts, reservations.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'USER'")),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("game_title", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_teams_game_name", "teams", ["game_title", "name"])

    op.create_table(
        "computers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("label", sa.String(64), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "blackouts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scope", sa.String(20), nullable=False, server_default=sa.text("'ALL'")),
        sa.Column("computer_id", sa.Integer(), sa.ForeignKey("computers.id"), nullable=True),
        sa.Column("reason", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("starts_at < ends_at", name="check_blackout_interval"),
        sa.CheckConstraint("scope IN ('ALL', 'COMPUTER')", name="check_blackout_scope"),
        sa.CheckConstraint(
            "(scope = 'COMPUTER' AND computer_id IS NOT NULL) OR (scope = 'ALL' AND computer_id IS NULL)",
            name="check_blackout_scope_computer",
        ),
    )
    op.create_index("ix_blackouts_range", "blackouts", ["starts_at", "ends_at"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), nullable=True),
        sa.Column("team_id", sa.String(64), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("computer_id", sa.Integer(), sa.ForeignKey("computers.id"), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by_user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'CONFIRMED'")),
        *_timestamps(),
        sa.CheckConstraint("starts_at < ends_at", name="check_reservation_interval"),
        sa.CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="check_reservation_status"),
    )
    op.create_index("ix_reservations_group_id", "reservations", ["group_id"])
    op.create_index("ix_reservations_team_id", "reservations", ["team_id"])
    # Conflict query: WHERE computer_id IN (...) AND starts_at < :end AND ends_at > :start
    op.create_index("ix_reservations_computer_range", "reservations", ["computer_id", "starts_at", "ends_at"])
    # Purge query: WHERE ends_at < :cutoff
    op.create_index("ix_reservations_ends_at", "reservations", ["ends_at"])

    # Backstop for the row-lock protocol in the booking engine: no two
    # CONFIRMED rows may overlap on one computer. '[)' makes back-to-back
    # slots legal, the same as the application-level check.
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE reservations
            ADD CONSTRAINT no_computer_overlap
            EXCLUDE USING gist (
                computer_id WITH =,
                tstzrange(starts_at, ends_at, '[)') WITH &&
            )
            WHERE (status = 'CONFIRMED')
            """
        )


def downgrade() -> None:
    op.drop_table("reservations")
    op.drop_table("blackouts")
    op.drop_table("computers")
    op.drop_table("teams")
    op.drop_table("users")
