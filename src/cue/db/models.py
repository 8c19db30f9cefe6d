"""SQLAlchemy ORM models."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Stores datetimes as naive UTC and returns them timezone-aware.

    SQLite has no timezone support, so values are normalized on the way in
    and tagged as UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(
        self, value: datetime | None, dialect
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Base class for all models."""

    type_annotation_map = {
        dict[str, Any]: JSON,
        datetime: UTCDateTime,
    }


class Schedule(Base):
    """A configured recurring or one-shot music assignment."""

    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    at: Mapped[datetime | None] = mapped_column(nullable=True)
    next_run: Mapped[datetime | None] = mapped_column(nullable=True, index=True)
    repeat: Mapped[int | None] = mapped_column(Integer, nullable=True)
    repeat_unit: Mapped[str | None] = mapped_column(String, nullable=True)
    assign: Mapped[str | None] = mapped_column(String, nullable=True)
    disabled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )

    targets: Mapped[list["Target"]] = relationship(
        "Target",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="Target.id",
    )


class Target(Base):
    """A zone a schedule assigns music to."""

    __tablename__ = "targets"
    __table_args__ = (UniqueConstraint("schedule_id", "zone_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False
    )
    zone_id: Mapped[str] = mapped_column(String, nullable=False)
    account_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    disabled_at: Mapped[datetime | None] = mapped_column(nullable=True)

    schedule: Mapped["Schedule"] = relationship("Schedule", back_populates="targets")


class Run(Base):
    """One tick of the schedule poller."""

    __tablename__ = "runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, nullable=False, index=True
    )

    actions: Mapped[list["Action"]] = relationship(
        "Action",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="Action.id",
    )


class Action(Base):
    """A request made towards the Soundtrack API during a run."""

    __tablename__ = "actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # No foreign key: the audit trail outlives deleted schedules.
    schedule_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    zone_id: Mapped[str] = mapped_column(String, nullable=False)
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)

    run: Mapped["Run"] = relationship("Run", back_populates="actions")


class AuthToken(Base):
    """The single user-mode credential. Always stored under key 0."""

    __tablename__ = "auth_tokens"

    key: Mapped[int] = mapped_column(Integer, primary_key=True)
    token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    refresh_token: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )


class CacheEntry(Base):
    """A cached API response."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    written_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )
