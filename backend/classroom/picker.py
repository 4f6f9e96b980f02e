"""
Classroom name picker.

One picker exists per running class session. It draws names from a weighted
pool, times the picked student's answer and, once the teacher judges it,
writes a participation record to the ledger.

    idle --draw--> drawn --start_timer--> drawn (timing) --resolve--> resolved
      ^              |                                                   |
      +--mark_absent-+                                                   |
      +------------------------- display delay elapsed ------------------+

Time is read from injectable clocks so the whole machine can be driven in
tests without sleeping.
"""
from __future__ import annotations
import logging
import random
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set

from fastapi import BackgroundTasks

from . import scoring
from .errors import NoStudentsError, PickerStateError
from .ledger import ParticipationLedger
from .pool import build_pool
from .schemas import ParticipationRecord, SessionInfo

logger = logging.getLogger(__name__)


class PickerState(str, Enum):
	IDLE = "idle"
	DRAWN = "drawn"
	RESOLVED = "resolved"


@dataclass(frozen=True)
class PickResult:
	student_name: str
	is_correct: bool
	elapsed_seconds: float
	base_score: int
	bonus: int
	total: int
	record_id: str


def new_record_id(now: Optional[datetime] = None) -> str:
	now = now or datetime.now(timezone.utc)
	return f"{now.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3]}Z-{uuid.uuid4().hex[:8]}"


class Picker:
	def __init__(
		self,
		session: SessionInfo,
		roster: Sequence[str],
		special_needs: Set[str],
		ledger: ParticipationLedger,
		*,
		rng: Optional[random.Random] = None,
		clock: Callable[[], float] = time.monotonic,
		wall_clock: Callable[[], float] = time.time,
	) -> None:
		self.session = session
		self.ledger = ledger
		self._rng = rng or random.Random()
		self._clock = clock
		self._wall_clock = wall_clock
		self.roster: List[str] = list(roster)
		self.special_needs: Set[str] = set(special_needs)
		self.pool: List[str] = []
		self.active: Optional[str] = None
		self.last_result: Optional[PickResult] = None
		self._state = PickerState.IDLE
		self._timer_started_at: Optional[float] = None
		self._frozen_elapsed_ms: Optional[float] = None
		self._display_until: Optional[float] = None
		self.reset_pool()

	# ---- state ----

	@property
	def state(self) -> PickerState:
		if self._state is PickerState.RESOLVED and self._clock() >= self._display_until:
			self._state = PickerState.IDLE
			self.active = None
			self._timer_started_at = None
			self._frozen_elapsed_ms = None
			self._display_until = None
		return self._state

	@property
	def timer_running(self) -> bool:
		return self.state is PickerState.DRAWN and self._timer_started_at is not None

	def elapsed_ms(self) -> float:
		if self._frozen_elapsed_ms is not None:
			return self._frozen_elapsed_ms
		if self._timer_started_at is None:
			return 0.0
		return (self._clock() - self._timer_started_at) * 1000

	def live_score(self) -> int:
		return scoring.live_score(self.elapsed_ms())

	def _require(self, state: PickerState, action: str) -> None:
		current = self.state
		if current is not state:
			raise PickerStateError(f"Cannot {action} while picker is {current.value}")

	# ---- pool ----

	def reconfigure(self, roster: Sequence[str], special_needs: Set[str]) -> None:
		self.roster = list(roster)
		self.special_needs = set(special_needs)
		self.reset_pool()

	def reset_pool(self) -> None:
		self.pool = build_pool(self.roster, lambda name: name in self.special_needs, self._rng)
		self.active = None
		self._state = PickerState.IDLE
		self._timer_started_at = None
		self._frozen_elapsed_ms = None
		self._display_until = None
		logger.info(
			"Name pool refilled",
			extra={"context": {"grade": self.session.grade, "period": self.session.period, "pool_size": len(self.pool)}},
		)

	# ---- transitions ----

	def draw(self) -> str:
		self._require(PickerState.IDLE, "draw")
		if not self.pool:
			self.reset_pool()
		if not self.pool:
			raise NoStudentsError(f"No students on the roster for {self.session.grade}")
		self.active = self.pool.pop(0)
		self._state = PickerState.DRAWN
		self._timer_started_at = None
		self._frozen_elapsed_ms = None
		return self.active

	def start_timer(self) -> None:
		self._require(PickerState.DRAWN, "start the timer")
		if self._timer_started_at is not None:
			raise PickerStateError("Timer already started")
		self._timer_started_at = self._clock()

	def mark_absent(self) -> str:
		self._require(PickerState.DRAWN, "mark absent")
		if self._timer_started_at is not None:
			raise PickerStateError("Cannot mark absent after the timer has started")
		# The drawn entry is consumed; any duplicate entries for this student stay in the pool
		name = self.active
		self.active = None
		self._state = PickerState.IDLE
		logger.info("Student marked absent", extra={"context": {"student": name}})
		return name

	def resolve(self, is_correct: bool, tasks: Optional[BackgroundTasks] = None) -> PickResult:
		self._require(PickerState.DRAWN, "resolve")
		if self._timer_started_at is None:
			raise PickerStateError("Start the timer before judging the answer")
		elapsed_ms = self.elapsed_ms()
		self._frozen_elapsed_ms = elapsed_ms
		base = scoring.live_score(elapsed_ms)
		total = scoring.award(is_correct, base)
		bonus = total - base if is_correct else 0
		record = ParticipationRecord(
			id=new_record_id(),
			student_name=self.active,
			grade=self.session.grade,
			date=self.session.date,
			day=self.session.day,
			period=self.session.period,
			timestamp=int(self._wall_clock() * 1000),
			duration_seconds=round(elapsed_ms / 1000, 1),
			score=total,
			is_correct=is_correct,
		)
		result = PickResult(
			student_name=self.active,
			is_correct=is_correct,
			elapsed_seconds=record.duration_seconds,
			base_score=base if is_correct else 0,
			bonus=bonus,
			total=total,
			record_id=record.id,
		)
		self.last_result = result
		self._state = PickerState.RESOLVED
		self._display_until = self._clock() + scoring.display_seconds(is_correct)
		logger.info(
			"Answer judged",
			extra={"context": {"student": result.student_name, "correct": is_correct, "score": total, "elapsed_ms": round(elapsed_ms)}},
		)
		self.ledger.append(record, tasks)
		return result

	def snapshot(self) -> Dict:
		state = self.state
		return {
			"session": self.session.to_json_dict(),
			"state": state.value,
			"poolSize": len(self.pool),
			"activeStudent": self.active,
			"isSpecialNeeds": self.active in self.special_needs if self.active else False,
			"timerRunning": self.timer_running,
			"elapsedSeconds": round(self.elapsed_ms() / 1000, 1),
			"liveScore": self.live_score(),
			"lastResult": asdict(self.last_result) if self.last_result else None,
		}
