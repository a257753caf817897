from enum import Enum

from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base


class AssetStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class Campus(Base):
    __tablename__ = "campus"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    status: Mapped[AssetStatus] = mapped_column(SAEnum(AssetStatus, name="asset_status"), nullable=False, default=AssetStatus.active)


class Building(Base):
    __tablename__ = "building"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    campus: Mapped[str] = mapped_column(ForeignKey("campus.name"), index=True, nullable=False)


class Classroom(Base):
    __tablename__ = "classroom"

    name: Mapped[str] = mapped_column(String(30), primary_key=True)
    building: Mapped[str] = mapped_column(ForeignKey("building.name"), index=True, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    status: Mapped[AssetStatus] = mapped_column(SAEnum(AssetStatus, name="asset_status"), nullable=False, default=AssetStatus.active)
