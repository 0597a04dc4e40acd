"""initial_schema

Revision ID: 3f1c0a9d2b7e
Revises:
Create Date: 2026-10-19 00:00:01.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c0a9d2b7e"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "anime_series",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("title_english", sa.String(length=512), nullable=True),
        sa.Column("title_japanese", sa.String(length=512), nullable=True),
        sa.Column("is_main_entry", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="upcoming"),
        sa.Column("total_episodes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_year", sa.Integer(), nullable=True),
        sa.Column("end_year", sa.Integer(), nullable=True),
        sa.Column("average_score", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_anime_series")),
    )
    op.create_index("ix_anime_series_title", "anime_series", ["title"])
    op.create_index("ix_anime_series_created_at", "anime_series", ["created_at"])

    op.create_table(
        "catalog_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("external_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("title_english", sa.String(length=512), nullable=True),
        sa.Column("title_japanese", sa.String(length=512), nullable=True),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("release_year", sa.Integer(), nullable=True),
        sa.Column("episodes", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=64), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("synopsis", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("relations", JSON_TYPE, nullable=False),
        sa.Column("series_id", sa.Integer(), nullable=True),
        sa.Column("series_type", sa.String(length=32), nullable=True),
        sa.Column("series_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["series_id"],
            ["anime_series.id"],
            name=op.f("fk_catalog_records_series_id_anime_series"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_catalog_records")),
        sa.UniqueConstraint("external_id", name=op.f("uq_catalog_records_external_id")),
    )
    op.create_index("ix_catalog_records_series_id", "catalog_records", ["series_id"])
    op.create_index("ix_catalog_records_title", "catalog_records", ["title"])

    op.create_table(
        "genres",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("external_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_genres")),
        sa.UniqueConstraint("external_id", name=op.f("uq_genres_external_id")),
    )
    op.create_table(
        "studios",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("external_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_studios")),
        sa.UniqueConstraint("external_id", name=op.f("uq_studios_external_id")),
    )

    op.create_table(
        "record_genres",
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("genre_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["record_id"], ["catalog_records.id"],
            name=op.f("fk_record_genres_record_id_catalog_records"), ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["genre_id"], ["genres.id"],
            name=op.f("fk_record_genres_genre_id_genres"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("record_id", "genre_id", name=op.f("pk_record_genres")),
    )
    op.create_table(
        "record_studios",
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("studio_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["record_id"], ["catalog_records.id"],
            name=op.f("fk_record_studios_record_id_catalog_records"), ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["studio_id"], ["studios.id"],
            name=op.f("fk_record_studios_studio_id_studios"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("record_id", "studio_id", name=op.f("pk_record_studios")),
    )

    op.create_table(
        "series_reviews",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("candidate_series_id", sa.Integer(), nullable=False),
        sa.Column("similarity", sa.Float(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["record_id"], ["catalog_records.id"],
            name=op.f("fk_series_reviews_record_id_catalog_records"), ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["candidate_series_id"], ["anime_series.id"],
            name=op.f("fk_series_reviews_candidate_series_id_anime_series"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_series_reviews")),
    )
    op.create_index("ix_series_reviews_status", "series_reviews", ["status"])
    op.create_index("ix_series_reviews_record_id", "series_reviews", ["record_id"])


def downgrade() -> None:
    op.drop_index("ix_series_reviews_record_id", table_name="series_reviews")
    op.drop_index("ix_series_reviews_status", table_name="series_reviews")
    op.drop_table("series_reviews")
    op.drop_table("record_studios")
    op.drop_table("record_genres")
    op.drop_table("studios")
    op.drop_table("genres")
    op.drop_index("ix_catalog_records_title", table_name="catalog_records")
    op.drop_index("ix_catalog_records_series_id", table_name="catalog_records")
    op.drop_table("catalog_records")
    op.drop_index("ix_anime_series_created_at", table_name="anime_series")
    op.drop_index("ix_anime_series_title", table_name="anime_series")
    op.drop_table("anime_series")
