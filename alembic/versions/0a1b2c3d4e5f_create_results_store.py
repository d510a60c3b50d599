"""create_results_store

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2025-10-01

Creates the submission store:
- Elections, polling stations and candidates (registry)
- Append-only election result submissions
- NOTIFY triggers so dashboards reload their snapshot on change
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0a1b2c3d4e5f"
down_revision = None
branch_labels = None
depends_on = None

NOTIFY_CHANNEL = "results_changed"
STORE_TABLES = ("elections", "polling_stations", "candidates", "election_results")


def _id_column() -> sa.Column:
    return sa.Column(
        "id", sa.Text, primary_key=True, server_default=sa.text("gen_random_uuid()::text")
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    # ============================================
    # REGISTRY
    # ============================================

    op.create_table(
        "elections",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("date", sa.TIMESTAMP(timezone=True), nullable=False),
        _created_at_column(),
    )

    # Results reference stations by name, so names are unique
    op.create_table(
        "polling_stations",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("city", sa.String(255), nullable=False),
        sa.Column("district", sa.String(255), nullable=False),
        _created_at_column(),
    )

    op.create_table(
        "candidates",
        _id_column(),
        sa.Column("election_id", sa.Text, sa.ForeignKey("elections.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("party", sa.String(255), nullable=False, server_default=""),
        sa.Column("photo_url", sa.Text, nullable=False, server_default=""),
        _created_at_column(),
    )
    op.create_index("idx_candidates_election", "candidates", ["election_id"])

    # ============================================
    # SUBMISSIONS (append-only)
    # ============================================

    op.create_table(
        "election_results",
        _id_column(),
        sa.Column("election_id", sa.Text, sa.ForeignKey("elections.id"), nullable=False),
        sa.Column("polling_station", sa.String(255), nullable=False),
        sa.Column("registered_voters", sa.Integer, nullable=False),
        sa.Column("turnout", sa.Integer, nullable=False),
        sa.Column("candidate_results", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("invalid_ballots", sa.Integer, nullable=False, server_default="0"),
        sa.Column("blank_ballots", sa.Integer, nullable=False, server_default="0"),
        # clock_timestamp(): rows of one import transaction must not tie
        sa.Column(
            "timestamp",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        sa.Column("seq", sa.BigInteger, sa.Identity(always=True), nullable=False, unique=True),
        sa.Column("submitted_by", sa.String(255), nullable=False),
        sa.Column("report_info", postgresql.JSONB, nullable=True),
        sa.CheckConstraint("turnout <= registered_voters", name="ck_results_turnout"),
    )
    op.create_index(
        "idx_results_election_station",
        "election_results",
        ["election_id", "polling_station", "timestamp"],
    )

    # ============================================
    # CHANGE NOTIFICATIONS
    # ============================================

    op.execute(
        f"""
        CREATE OR REPLACE FUNCTION notify_results_changed() RETURNS trigger AS $$
        BEGIN
            PERFORM pg_notify('{NOTIFY_CHANNEL}', TG_TABLE_NAME);
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    for table in STORE_TABLES:
        op.execute(
            f"""
            CREATE TRIGGER trigger_{table}_changed
            AFTER INSERT OR UPDATE OR DELETE ON {table}
            FOR EACH STATEMENT EXECUTE FUNCTION notify_results_changed()
            """
        )


def downgrade() -> None:
    for table in STORE_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trigger_{table}_changed ON {table}")
    op.execute("DROP FUNCTION IF EXISTS notify_results_changed()")

    op.drop_table("election_results")
    op.drop_table("candidates")
    op.drop_table("polling_stations")
    op.drop_table("elections")
