from __future__ import annotations
from typing import Dict, Iterable, List

from .schemas import LeaderboardEntry, ParticipationRecord, SessionInfo


# Records written before per-answer scoring counted a correct answer as one point
LEGACY_POINTS = 1


def session_leaderboard(records: Iterable[ParticipationRecord], session: SessionInfo) -> List[LeaderboardEntry]:
	"""Sum correct-answer points per student for one (date, grade, period) session.

	Sorted by total descending. The sort is stable, so students with equal
	totals keep the order in which they first scored in the ledger.
	"""
	totals: Dict[str, int] = {}
	for record in records:
		if not record.is_correct:
			continue
		if not record.in_session(session.date, session.grade, session.period):
			continue
		points = record.score if record.score is not None else LEGACY_POINTS
		totals[record.student_name] = totals.get(record.student_name, 0) + points
	entries = [LeaderboardEntry(name=name, score=score) for name, score in totals.items()]
	return sorted(entries, key=lambda e: e.score, reverse=True)
