"""
SQLAlchemy ORM models.

These are purely infrastructure concerns; domain entities are mapped to/from
these models inside the repository implementations.
"""
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    Double,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vehicle_tracking.domain.geo.geo_point import GeoPoint
from vehicle_tracking.infrastructure.database.connection import Base
from vehicle_tracking.infrastructure.database.geometry import PointGeometry


class VehicleModel(Base):
    __tablename__ = "vehicle"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created: Mapped[date] = mapped_column(Date, nullable=False)
    patent: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    provider: Mapped[str] = mapped_column(String(150), nullable=False, index=True)

    # Provider portal credentials
    user: Mapped[str] = mapped_column(String(100), nullable=False)
    password: Mapped[str] = mapped_column(String(60), nullable=False)

    manifests: Mapped[list["ManifestModel"]] = relationship(
        "ManifestModel", back_populates="vehicle", lazy="select"
    )


class ManifestModel(Base):
    __tablename__ = "manifest"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[str] = mapped_column(String(20), nullable=False)
    vehicle_id: Mapped[int] = mapped_column(
        ForeignKey("vehicle.id"), nullable=False, index=True
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    process: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[int] = mapped_column(Integer, nullable=False)
    updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    vehicle: Mapped[VehicleModel] = relationship("VehicleModel", back_populates="manifests")

    __table_args__ = (
        Index("ix_manifest_active_process_state", "active", "process", "state"),
    )


class VehicleLocationModel(Base):
    """Append-only position history."""

    __tablename__ = "vehicle_info_location"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicle.id"), nullable=False)
    manifest_id: Mapped[int] = mapped_column(ForeignKey("manifest.id"), nullable=False)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)

    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    location: Mapped[GeoPoint] = mapped_column(PointGeometry(), nullable=False)

    speed: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Provider telemetry
    reason: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    driver: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    georeference: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    in_zone: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    detention_time: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    distance_traveled: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    temperature: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    angle: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)

    __table_args__ = (
        Index("ix_vehicle_info_location_vehicle_timestamp", "vehicle_id", "timestamp"),
        Index("ix_vehicle_info_location_location", "location", postgresql_using="gist"),
    )
