"""ORM models for trails, waypoints and per-player progress.

Table names follow the hosted schema the mobile client already reads
(``cities``, ``locations``, ``user_progress``, ``trail_completions`` ...).
Content tables are written by the external content tooling; the engine
only ever inserts into ``user_progress`` and ``trail_completions``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storytrail.db.base import Base

_JSON = JSON().with_variant(JSONB(), "postgresql")


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Content (read-only to the engine)
# ---------------------------------------------------------------------------


class Trail(Base):
    """A themed trail of waypoints (``cities`` table)."""

    __tablename__ = "cities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tagline: Mapped[str | None] = mapped_column(String(300), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    waypoints: Mapped[list[Waypoint]] = relationship(
        "Waypoint", back_populates="trail", order_by="Waypoint.sequence_order"
    )

    @property
    def is_free(self) -> bool:
        return self.price_cents == 0


class Waypoint(Base):
    """A single stop on a trail (``locations`` table).

    ``correct_answer_indices``, ``correct_answer_index``, ``free_text_answer``
    and ``clue_text`` are secret until solved and never leave the server
    except through a correct validation.
    """

    __tablename__ = "locations"
    __table_args__ = (UniqueConstraint("city_id", "sequence_order", name="uq_location_city_sequence"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    city_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sequence_order: Mapped[int] = mapped_column(Integer, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    intro_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    riddle_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="multiple_choice", server_default="multiple_choice"
    )
    answer_options: Mapped[list[str]] = mapped_column(_JSON, nullable=False, default=list)
    correct_answer_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    correct_answer_indices: Mapped[list[int]] = mapped_column(_JSON, nullable=False, default=list)
    free_text_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    clue_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_intro_location: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_reveal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_end_location: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    trail: Mapped[Trail] = relationship("Trail", back_populates="waypoints")

    @property
    def coordinate(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


# ---------------------------------------------------------------------------
# Player records (engine-owned writes)
# ---------------------------------------------------------------------------


class ProgressRecord(Base):
    """Solved waypoint — UNIQUE(user_id, location_id) makes writes idempotent."""

    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "location_id", name="uq_progress_user_location"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    city_id: Mapped[str] = mapped_column(String(36), ForeignKey("cities.id", ondelete="CASCADE"), nullable=False)
    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False
    )
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class CompletionRecord(Base):
    """Finished run — UNIQUE(user_id, city_id), first write wins."""

    __tablename__ = "trail_completions"
    __table_args__ = (UniqueConstraint("user_id", "city_id", name="uq_completion_user_city"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    city_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    completion_time_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Collaborator-owned reads
# ---------------------------------------------------------------------------


class Purchase(Base):
    """Entitlement to a paid trail, written by the payments flow."""

    __tablename__ = "user_purchases"
    __table_args__ = (UniqueConstraint("user_id", "city_id", name="uq_purchase_user_city"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    city_id: Mapped[str] = mapped_column(String(36), ForeignKey("cities.id", ondelete="CASCADE"), nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    payment_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Profile(Base):
    """Public player profile; ``player_name`` is what leaderboards show."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    player_name: Mapped[str | None] = mapped_column(String(100), nullable=True)


class AppSetting(Base):
    """Runtime-toggled application setting stored as JSON (e.g. ``playtest_enabled``)."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[dict[str, Any]] = mapped_column(_JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
