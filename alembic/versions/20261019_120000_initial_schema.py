"""Initial schema: venues, members, matches, ratings, tournaments, seasons

Revision ID: 5e1c0a9d2b7f
Revises:
Create Date: 2026-10-19 12:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# Revision identifiers, used by Alembic.
revision: str = "5e1c0a9d2b7f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "venues",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mode", sa.String(length=20), nullable=True),
        sa.Column("k_factor", sa.Float(), nullable=True),
        sa.Column("season_history", JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_venues_sport", "venues", ["sport"], unique=False)

    op.create_table(
        "venue_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("venue_id", sa.String(length=64), nullable=False),
        sa.Column("participant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("venue_id", "participant_id", name="uq_venue_member"),
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("venue_id", sa.String(length=64), nullable=True),
        sa.Column("timestamp", sa.String(length=64), nullable=True),
        sa.Column("player1_id", sa.String(length=64), nullable=True),
        sa.Column("player2_id", sa.String(length=64), nullable=True),
        sa.Column("player1", JSON, nullable=False),
        sa.Column("player2", JSON, nullable=False),
        sa.Column("is_ranked", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("winner_name", sa.String(length=255), nullable=True),
        sa.Column("winner_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_matches_sport", "matches", ["sport"], unique=False)
    op.create_index("idx_matches_sport_venue", "matches", ["sport", "venue_id"], unique=False)

    op.create_table(
        "participant_ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.String(length=64), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("global_rating", sa.Float(), nullable=False),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating_history", JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("participant_id", "sport", name="uq_participant_rating_sport"),
    )

    op.create_table(
        "tournaments",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("stage", sa.String(length=20), nullable=False),
        sa.Column("bracket", JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "season_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("venue_id", sa.String(length=64), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("date_finished", sa.String(length=32), nullable=True),
        sa.Column("record", JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_season_records_venue", "season_records", ["venue_id", "created_at"], unique=False)

    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.String(length=64), nullable=False),
        sa.Column("sport", sa.String(length=20), nullable=False),
        sa.Column("venue_id", sa.String(length=64), nullable=True),
        sa.Column("kind", sa.String(length=30), nullable=False),
        sa.Column("place", sa.Integer(), nullable=True),
        sa.Column("details", JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_achievements_participant", "achievements", ["participant_id", "sport"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_achievements_participant", table_name="achievements")
    op.drop_table("achievements")
    op.drop_index("idx_season_records_venue", table_name="season_records")
    op.drop_table("season_records")
    op.drop_table("tournaments")
    op.drop_table("participant_ratings")
    op.drop_index("idx_matches_sport_venue", table_name="matches")
    op.drop_index("idx_matches_sport", table_name="matches")
    op.drop_table("matches")
    op.drop_table("venue_members")
    op.drop_index("idx_venues_sport", table_name="venues")
    op.drop_table("venues")
