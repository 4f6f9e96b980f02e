"""Teacher-facing views over the participation ledger: the diary log and the participation report."""
from __future__ import annotations
from datetime import date as date_type, timedelta
from typing import Dict, Iterable, List, Optional

from .curriculum import roster_for
from .schemas import ParticipationRecord

TIMEFRAMES = ("day", "week", "month", "all")


def session_id(record: ParticipationRecord) -> str:
	return f"{record.date}-{record.grade}-{record.period}"


def diary_entries(records: Iterable[ParticipationRecord]) -> List[Dict]:
	sessions: Dict[str, Dict] = {}
	for record in records:
		key = session_id(record)
		if key not in sessions:
			sessions[key] = {
				"sessionInfo": {"date": record.date, "day": record.day, "period": record.period, "grade": record.grade},
				"records": [],
			}
		sessions[key]["records"].append(record)

	entries = []
	for key, data in sessions.items():
		total_students = len(roster_for(data["sessionInfo"]["grade"]))
		participants = {r.student_name for r in data["records"]}
		percentage = (len(participants) / total_students * 100) if total_students > 0 else 0.0
		entries.append({
			"id": key,
			"sessionInfo": data["sessionInfo"],
			"participationCount": len(participants),
			"totalStudents": total_students,
			"participationPercentage": round(percentage, 2),
			"records": [r.to_json_dict() for r in sorted(data["records"], key=lambda r: r.student_name.lower())],
		})
	# ISO dates sort chronologically as strings
	return sorted(entries, key=lambda e: e["sessionInfo"]["date"], reverse=True)


def _timeframe_start(timeframe: str, today: date_type) -> Optional[date_type]:
	if timeframe == "day":
		return today
	if timeframe == "week":
		# Weeks start on Sunday; weekday() counts from Monday == 0
		return today - timedelta(days=(today.weekday() + 1) % 7)
	if timeframe == "month":
		return today.replace(day=1)
	return None


def participation_report(
	records: Iterable[ParticipationRecord],
	*,
	timeframe: str = "day",
	grade: Optional[str] = None,
	period: Optional[int] = None,
	today: Optional[date_type] = None,
) -> Dict:
	if timeframe not in TIMEFRAMES:
		raise ValueError(f"timeframe must be one of {TIMEFRAMES}")
	start = _timeframe_start(timeframe, today or date_type.today())

	filtered: List[ParticipationRecord] = []
	for r in records:
		if start is not None:
			try:
				record_date = date_type.fromisoformat(r.date)
			except ValueError:
				continue
			if record_date < start or (timeframe == "day" and record_date != start):
				continue
		if grade and r.grade != grade:
			continue
		if period is not None and int(r.period) != int(period):
			continue
		filtered.append(r)

	by_student: Dict[str, List[ParticipationRecord]] = {}
	for r in filtered:
		by_student.setdefault(r.student_name, []).append(r)

	students = [
		{
			"name": name,
			"count": len(recs),
			"records": [r.to_json_dict() for r in sorted(recs, key=lambda r: r.timestamp, reverse=True)],
		}
		for name, recs in by_student.items()
	]
	# Least participation first so the teacher sees who to call on next
	students.sort(key=lambda s: s["count"])
	return {
		"timeframe": timeframe,
		"totalParticipations": len(filtered),
		"uniqueStudents": len(students),
		"students": students,
	}
