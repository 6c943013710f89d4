# backend/coworking/services/conflicts/checker.py
"""
Fail-fast conflict check for one date and time window.

Loads candidates from every source for all requested rooms at once,
then applies the overlap primitive. The first overlap raises ConflictError;
callers that need every conflict (availability) accumulate per date.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError
from .overlap import normalize_time, times_overlap
from .sources import CandidateQuery, CandidateSource, ConflictCandidate, default_sources

logger = logging.getLogger(__name__)


def conflict_info(
    candidate: ConflictCandidate,
    description: str,
) -> dict:
    """Structured detail of one colliding interval."""
    return {
        "date": candidate.date,
        "type": candidate.source,
        "description": description,
        "start_time": candidate.start_time,
        "end_time": candidate.end_time,
    }


class ConflictChecker:
    """Checks a time window against all candidate sources."""

    def __init__(self, sources: Optional[list[CandidateSource]] = None):
        self.sources = sources if sources is not None else default_sources()

    def check_conflicts(
        self,
        db: Session,
        date: str,
        start_time: str,
        end_time: str,
        room_ids: list[int],
        teacher_id: Optional[int] = None,
        exclude_ids: Optional[dict[str, int]] = None,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        """
        Raise ConflictError on the first overlap.

        Args:
            date: "YYYY-MM-DD"
            start_time, end_time: "HH:MM", half-open window
            room_ids: Rooms to check
            teacher_id: Also check this teacher's class sessions in any room
            exclude_ids: {source kind: id} of an entry re-validated against itself
            exclude_booking_id: Skip rental slots owned by this application
        """
        start_time = normalize_time(start_time)
        end_time = normalize_time(end_time)
        exclude_ids = exclude_ids or {}

        if room_ids:
            for source in self.sources:
                query = CandidateQuery(
                    room_ids=tuple(room_ids),
                    dates=(date,),
                    exclude_id=exclude_ids.get(source.kind),
                    exclude_booking_id=exclude_booking_id,
                )
                for candidate in source.fetch(db, query):
                    if candidate.is_cancelled:
                        continue
                    if times_overlap(start_time, end_time, candidate.start_time, candidate.end_time):
                        message = source.conflict_message(candidate)
                        logger.info(f"Conflict on {date} {start_time}-{end_time}: {message}")
                        raise ConflictError(message, [conflict_info(candidate, message)])

        if teacher_id is not None:
            self._check_teacher(db, date, start_time, end_time, teacher_id, exclude_ids)

    def _check_teacher(
        self,
        db: Session,
        date: str,
        start_time: str,
        end_time: str,
        teacher_id: int,
        exclude_ids: dict[str, int],
    ) -> None:
        for source in self.sources:
            if not source.supports_teacher:
                continue
            sessions = source.fetch_for_teacher(
                db, teacher_id, date, exclude_id=exclude_ids.get(source.kind)
            )
            for candidate in sessions:
                if times_overlap(start_time, end_time, candidate.start_time, candidate.end_time):
                    message = source.teacher_message(candidate)
                    raise ConflictError(message, [conflict_info(candidate, message)])
