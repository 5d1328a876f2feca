# Overview: Service-layer operations for bag references; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ReferenceSequence
from ..time_utils import utcnow
from .concurrency import run_with_retry


REFERENCE_PREFIX = "MC"
REFERENCE_PAD = 5


class ReferenceSequenceError(Exception):
    """Raised when a reference cannot be allocated."""


def format_reference(year: int, number: int) -> str:
    return f"{REFERENCE_PREFIX}-{year}-{number:0{REFERENCE_PAD}d}"


def next_bag_reference(year: int | None = None) -> str:
    """
    Atomically allocate the next bag reference for a year.

    Runs inside the caller's transaction (flush only, no commit) so the
    reference is released if the bag insert fails.
    """
    year = year or utcnow().year

    def _current() -> int:
        current = (
            db.session.query(ReferenceSequence.next_number)
            .filter_by(year=year)
            .scalar()
        )
        if current is None:
            raise ReferenceSequenceError(f"Sequence for {year} vanished")
        return current - 1

    def _op() -> str:
        stmt = (
            update(ReferenceSequence)
            .where(ReferenceSequence.year == year)
            .values(next_number=ReferenceSequence.next_number + 1)
        )

        result = db.session.execute(stmt)
        if result.rowcount:
            db.session.flush()
            return format_reference(year, _current())

        seq = ReferenceSequence(year=year, next_number=2)
        try:
            with db.session.begin_nested():
                db.session.add(seq)
        except IntegrityError:
            # Another writer created the row first
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            db.session.flush()
            return format_reference(year, _current())
        return format_reference(year, 1)

    return run_with_retry(_op)
