"""
SQLAlchemy ORM models.

Tables:
- rounds: one row per round (aggregate root; owns attempts and digit notes)
- attempts: one row per evaluated guess (append-only history)
- digit_notes: the player's 0..9 deduction board, exactly 10 rows per round

State is a native Enum column, so "the active round" is a plain WHERE on it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .constants import CODE_LENGTH
from .db import Base
from .types import DigitMark, RoundState


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Round(Base):
    __tablename__ = "rounds"

    # UUIDs generated in code; stored as strings
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Secret code ("50317"); never changes after creation
    secret: Mapped[str] = mapped_column(String(CODE_LENGTH), nullable=False)

    state: Mapped[RoundState] = mapped_column(
        Enum(RoundState, name="round_state", values_callable=_enum_values),
        nullable=False,
        default=RoundState.IN_PROGRESS,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    # Set once, when the round becomes won or abandoned
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    attempts: Mapped[list["Attempt"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="Attempt.id",
    )
    digit_notes: Mapped[list["DigitNote"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="DigitNote.digit",
    )


class Attempt(Base):
    __tablename__ = "attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    round_id: Mapped[str] = mapped_column(String(36), ForeignKey("rounds.id", ondelete="CASCADE"), index=True)
    round: Mapped[Round] = relationship(back_populates="attempts")

    guess_text: Mapped[str] = mapped_column(String(CODE_LENGTH), nullable=False)

    # Evaluator output
    exact_count: Mapped[int] = mapped_column(Integer, nullable=False)
    partial_count: Mapped[int] = mapped_column(Integer, nullable=False)
    is_no_match: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_repeated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class DigitNote(Base):
    __tablename__ = "digit_notes"
    __table_args__ = (UniqueConstraint("round_id", "digit", name="uq_digit_note_round_digit"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    round_id: Mapped[str] = mapped_column(String(36), ForeignKey("rounds.id", ondelete="CASCADE"), index=True)
    round: Mapped[Round] = relationship(back_populates="digit_notes")

    digit: Mapped[int] = mapped_column(Integer, nullable=False)
    mark: Mapped[DigitMark] = mapped_column(
        Enum(DigitMark, name="digit_mark", values_callable=_enum_values),
        nullable=False,
        default=DigitMark.UNKNOWN,
    )
