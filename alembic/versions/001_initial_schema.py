"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2025-01-01 00:00:00.000000
"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

EXPERIENCE_LEVELS = ("BEGINNER", "INTERMEDIATE", "ADVANCED", "EXPERT")
CONNECTION_STATUSES = ("PENDING", "ACCEPTED")


def upgrade() -> None:
    # Enum types are shared between tables, so create them once up front.
    bind = op.get_bind()
    postgresql.ENUM(*EXPERIENCE_LEVELS, name="experience_level_enum").create(bind, checkfirst=True)
    postgresql.ENUM(*CONNECTION_STATUSES, name="connection_status_enum").create(bind, checkfirst=True)
    experience_level = postgresql.ENUM(*EXPERIENCE_LEVELS, name="experience_level_enum", create_type=False)
    connection_status = postgresql.ENUM(*CONNECTION_STATUSES, name="connection_status_enum", create_type=False)

    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.String(100), unique=True, nullable=False, index=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Reference data
    op.create_table(
        "genres",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
    )
    op.create_index("uq_genres_name_lower", "genres", [sa.text("lower(name)")], unique=True)

    op.create_table(
        "skills",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
    )
    op.create_index("uq_skills_name_lower", "skills", [sa.text("lower(name)")], unique=True)

    # Profiles
    op.create_table(
        "artist_profiles",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("availability", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("experience_level", experience_level, nullable=False),
    )
    op.create_table(
        "producer_profiles",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("availability", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("experience_level", experience_level, nullable=False),
    )

    # Profile join tables
    op.create_table(
        "artist_genres",
        sa.Column(
            "artist_profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("artist_profiles.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("genre_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "artist_skills",
        sa.Column(
            "artist_profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("artist_profiles.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("skill_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "producer_genres",
        sa.Column(
            "producer_profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("producer_profiles.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("genre_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
    )

    # Blocks
    op.create_table(
        "user_blocks",
        sa.Column("blocker_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("blocked_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_user_blocks_blocked_id", "user_blocks", ["blocked_id"])

    # Connections
    op.create_table(
        "user_connections",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "requester_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "addressee_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("pair_low_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("pair_high_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "status",
            connection_status,
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("request_timestamp", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("accept_timestamp", sa.DateTime, nullable=True),
        sa.UniqueConstraint("pair_low_id", "pair_high_id", name="uq_user_connections_pair"),
        sa.CheckConstraint("requester_id != addressee_id", name="ck_user_connections_not_self"),
    )
    op.create_index("ix_user_connections_requester_id", "user_connections", ["requester_id"])
    op.create_index("ix_user_connections_addressee_id", "user_connections", ["addressee_id"])
    op.create_index("ix_user_connections_requester_status", "user_connections", ["requester_id", "status"])
    op.create_index("ix_user_connections_addressee_status", "user_connections", ["addressee_id", "status"])


def downgrade() -> None:
    op.drop_table("user_connections")
    op.drop_table("user_blocks")
    op.drop_table("producer_genres")
    op.drop_table("artist_skills")
    op.drop_table("artist_genres")
    op.drop_table("producer_profiles")
    op.drop_table("artist_profiles")
    op.drop_table("skills")
    op.drop_table("genres")
    op.drop_table("users")
    postgresql.ENUM(name="connection_status_enum").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="experience_level_enum").drop(op.get_bind(), checkfirst=True)
