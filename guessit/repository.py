"""
DB-backed round gateway that mirrors the in-memory InMemoryRoundStore API.

Public methods (all async):
- fetch_in_progress_round() -> RoundData | None
- fetch_or_create_in_progress_round() -> RoundData
- fetch_latest_round() -> RoundData | None
- create_round() -> RoundData
- fetch_round(round_id) -> RoundData
- record_attempt(round_id, guess_text, result, won) -> AttemptRecord
- mark_abandoned(round_id) -> None
- fetch_finished_summaries() -> list[RoundSummary]
- fetch_detail_snapshot(round_id) -> RoundDetail
- set_digit_mark(round_id, digit, mark) -> DigitNoteSnapshot
- reset_digit_notes(round_id) -> None

Same API as the store, so the orchestrator runs on either one.
Each method is one session and one commit; any SQLAlchemy failure comes out
as PersistenceError.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional
from uuid import uuid4

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from .constants import ALPHABET
from .dto import AttemptRecord, DigitNoteSnapshot, RoundData, RoundDetail, RoundSummary
from .engine import EvaluationResult
from .errors import IllegalTransitionError, PersistenceError, RoundNotActiveError, RoundNotFoundError
from .models import Attempt as AttemptORM, DigitNote as DigitNoteORM, Round as RoundORM, utcnow
from .secret_generator import generate
from .types import Code, Digit, DigitMark, RoundState

logger = logging.getLogger(__name__)

# --- Small DTO builders so the orchestrator never sees ORM rows ---


def _to_round_data(rnd: RoundORM) -> RoundData:
    return RoundData(
        id=rnd.id,
        secret=rnd.secret,
        state=rnd.state,
        created_at=rnd.created_at,
        finished_at=rnd.finished_at,
    )


def _to_attempt(a: AttemptORM) -> AttemptRecord:
    return AttemptRecord(
        id=a.id,
        guess_text=a.guess_text,
        exact_count=a.exact_count,
        partial_count=a.partial_count,
        is_no_match=a.is_no_match,
        is_repeated=a.is_repeated,
        created_at=a.created_at,
    )


def _to_note(n: DigitNoteORM) -> DigitNoteSnapshot:
    return DigitNoteSnapshot(digit=n.digit, mark=n.mark)


class DBRoundRepository:
    """Async SQLAlchemy implementation of the round gateway."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        secret_factory: Callable[[], Code] = generate,
    ):
        self._session_factory = session_factory
        self._secret_factory = secret_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Round storage failure: %s", exc.__class__.__name__)
                raise PersistenceError() from exc

    async def _get(self, session: AsyncSession, round_id: str) -> RoundORM:
        rnd = await session.get(RoundORM, round_id)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        return rnd

    # --- Rounds ---

    async def fetch_in_progress_round(self) -> Optional[RoundData]:
        async with self._session() as session:
            stmt = (
                select(RoundORM)
                .where(RoundORM.state == RoundState.IN_PROGRESS)
                .order_by(RoundORM.created_at.desc())
                .limit(1)
            )
            rnd = (await session.execute(stmt)).scalars().first()
            return _to_round_data(rnd) if rnd else None

    async def fetch_or_create_in_progress_round(self) -> RoundData:
        existing = await self.fetch_in_progress_round()
        if existing is not None:
            return existing
        return await self.create_round()

    async def fetch_latest_round(self) -> Optional[RoundData]:
        async with self._session() as session:
            stmt = select(RoundORM).order_by(RoundORM.created_at.desc()).limit(1)
            rnd = (await session.execute(stmt)).scalars().first()
            return _to_round_data(rnd) if rnd else None

    async def create_round(self) -> RoundData:
        # The secret source may do network I/O (random.org), keep it off the loop
        secret = await asyncio.to_thread(self._secret_factory)

        async with self._session() as session:
            rnd = RoundORM(
                id=str(uuid4()),
                secret=secret,
                state=RoundState.IN_PROGRESS,
                created_at=utcnow(),
                finished_at=None,
                digit_notes=[DigitNoteORM(digit=d, mark=DigitMark.UNKNOWN) for d in ALPHABET],
            )
            session.add(rnd)
            await session.commit()
            logger.info("Created round %s", rnd.id)
            return _to_round_data(rnd)

    async def fetch_round(self, round_id: str) -> RoundData:
        async with self._session() as session:
            return _to_round_data(await self._get(session, round_id))

    # --- Attempts + transitions ---

    async def record_attempt(
        self, round_id: str, guess_text: str, result: EvaluationResult, won: bool
    ) -> AttemptRecord:
        """Append the attempt and (when won) close the round in one commit."""
        async with self._session() as session:
            rnd = await self._get(session, round_id)
            if rnd.state is not RoundState.IN_PROGRESS:
                raise RoundNotActiveError(rnd.state)

            is_repeated = await session.scalar(
                select(
                    exists().where(
                        AttemptORM.round_id == round_id,
                        AttemptORM.guess_text == guess_text,
                    )
                )
            )

            attempt = AttemptORM(
                round_id=round_id,
                guess_text=guess_text,
                exact_count=result.exact_count,
                partial_count=result.partial_count,
                is_no_match=result.is_no_match,
                is_repeated=bool(is_repeated),
                created_at=utcnow(),
            )
            session.add(attempt)

            if won:
                rnd.state = RoundState.WON
                rnd.finished_at = utcnow()

            await session.commit()
            return _to_attempt(attempt)

    async def mark_abandoned(self, round_id: str) -> None:
        async with self._session() as session:
            rnd = await self._get(session, round_id)
            if rnd.state is not RoundState.IN_PROGRESS:
                raise IllegalTransitionError(rnd.state, RoundState.ABANDONED)
            rnd.state = RoundState.ABANDONED
            rnd.finished_at = utcnow()
            await session.commit()

    # --- Snapshots (history & detail) ---

    async def fetch_finished_summaries(self) -> list[RoundSummary]:
        async with self._session() as session:
            attempts_count = func.count(AttemptORM.id)
            stmt = (
                select(RoundORM, attempts_count)
                .outerjoin(AttemptORM, AttemptORM.round_id == RoundORM.id)
                .where(RoundORM.state != RoundState.IN_PROGRESS)
                .group_by(RoundORM.id)
                .order_by(RoundORM.finished_at.desc(), RoundORM.created_at.desc())
            )
            rows = (await session.execute(stmt)).all()
            return [
                RoundSummary(
                    id=rnd.id,
                    state=rnd.state,
                    created_at=rnd.created_at,
                    finished_at=rnd.finished_at,
                    attempts_count=count,
                )
                for rnd, count in rows
            ]

    async def fetch_detail_snapshot(self, round_id: str) -> RoundDetail:
        async with self._session() as session:
            stmt = (
                select(RoundORM)
                .where(RoundORM.id == round_id)
                .options(selectinload(RoundORM.attempts), selectinload(RoundORM.digit_notes))
            )
            rnd = (await session.execute(stmt)).scalars().first()
            if rnd is None:
                raise RoundNotFoundError(round_id)

            notes = {n.digit: n for n in rnd.digit_notes}
            if len(notes) != len(ALPHABET):
                logger.warning("Round %s had %d digit notes, repairing", rnd.id, len(notes))
                await self._repair_notes(session, rnd.id, notes)
                await session.commit()

            # Attempt ids are autoincrement, so they follow insertion order
            attempts = sorted(rnd.attempts, key=lambda a: a.id, reverse=True)
            return RoundDetail(
                id=rnd.id,
                state=rnd.state,
                created_at=rnd.created_at,
                finished_at=rnd.finished_at,
                secret=rnd.secret if rnd.state is RoundState.WON else None,
                attempts=tuple(_to_attempt(a) for a in attempts),
                digit_notes=tuple(_to_note(notes[d]) for d in ALPHABET),
            )

    # --- Digit notes ---

    async def set_digit_mark(self, round_id: str, digit: Digit, mark: DigitMark) -> DigitNoteSnapshot:
        async with self._session() as session:
            await self._get(session, round_id)
            stmt = select(DigitNoteORM).where(
                DigitNoteORM.round_id == round_id, DigitNoteORM.digit == digit
            )
            note = (await session.execute(stmt)).scalars().first()
            if note is None:
                logger.warning("Round %s was missing the note for digit %d, creating it", round_id, digit)
                note = DigitNoteORM(round_id=round_id, digit=digit, mark=mark)
                session.add(note)
            else:
                note.mark = mark
            await session.commit()
            return _to_note(note)

    async def reset_digit_notes(self, round_id: str) -> None:
        async with self._session() as session:
            await self._get(session, round_id)
            await session.execute(
                update(DigitNoteORM)
                .where(DigitNoteORM.round_id == round_id)
                .values(mark=DigitMark.UNKNOWN)
            )
            existing = (
                await session.execute(select(DigitNoteORM).where(DigitNoteORM.round_id == round_id))
            ).scalars().all()
            notes = {n.digit: n for n in existing}
            if len(notes) != len(ALPHABET):
                await self._repair_notes(session, round_id, notes)
            await session.commit()

    async def _repair_notes(self, session: AsyncSession, round_id: str, notes: dict) -> None:
        # Keep the board at exactly one note per digit
        for d in ALPHABET:
            if d not in notes:
                note = DigitNoteORM(round_id=round_id, digit=d, mark=DigitMark.UNKNOWN)
                session.add(note)
                notes[d] = note
        await session.flush()
