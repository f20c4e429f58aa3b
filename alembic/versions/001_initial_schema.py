"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2024-01-01 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op
from vehicle_tracking.infrastructure.database.geometry import PointGeometry

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # Fleet vehicles with their provider portal credentials
    op.create_table(
        "vehicle",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("patent", sa.String(10), nullable=False, unique=True),
        sa.Column("provider", sa.String(150), nullable=False),
        sa.Column("user", sa.String(100), nullable=False),
        sa.Column("password", sa.String(60), nullable=False),
    )
    op.create_index("ix_vehicle_provider", "vehicle", ["provider"])

    # Work orders gating tracking eligibility
    op.create_table(
        "manifest",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("number", sa.String(20), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicle.id"), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("process", sa.Integer(), nullable=False),
        sa.Column("state", sa.Integer(), nullable=False),
        sa.Column(
            "updated",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_manifest_vehicle_id", "manifest", ["vehicle_id"])
    op.create_index("ix_manifest_active_process_state", "manifest", ["active", "process", "state"])

    # Append-only position history
    op.create_table(
        "vehicle_info_location",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicle.id"), nullable=False),
        sa.Column("manifest_id", sa.Integer(), sa.ForeignKey("manifest.id"), nullable=False),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("latitude", sa.Double(), nullable=False),
        sa.Column("longitude", sa.Double(), nullable=False),
        sa.Column("location", PointGeometry(), nullable=False),
        sa.Column("speed", sa.Numeric(10, 2), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        # Provider telemetry
        sa.Column("reason", sa.String(2000), nullable=False, server_default=""),
        sa.Column("driver", sa.String(100), nullable=False, server_default=""),
        sa.Column("georeference", sa.String(1000), nullable=False, server_default=""),
        sa.Column("in_zone", sa.String(100), nullable=False, server_default=""),
        sa.Column("detention_time", sa.String(50), nullable=False, server_default=""),
        sa.Column("distance_traveled", sa.Numeric(18, 2), nullable=False),
        sa.Column("temperature", sa.Numeric(18, 2), nullable=False),
        sa.Column("angle", sa.SmallInteger(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_vehicle_info_location_vehicle_timestamp",
        "vehicle_info_location",
        ["vehicle_id", "timestamp"],
    )
    op.create_index(
        "ix_vehicle_info_location_location",
        "vehicle_info_location",
        ["location"],
        postgresql_using="gist",
    )


def downgrade() -> None:
    op.drop_table("vehicle_info_location")
    op.drop_table("manifest")
    op.drop_table("vehicle")
