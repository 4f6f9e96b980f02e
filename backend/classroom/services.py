"""
Composition root for one running classroom backend.

Everything stateful (local store, cloud client, ledgers, curriculum, the
current session and its picker) hangs off a single ``ClassroomServices``
instance stored on ``app.state``. Routers reach it through ``get_services``
so tests can build their own with fake clocks and clients.
"""
from __future__ import annotations
import logging
import random
import time
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from .cloud import CloudClient, parse_cloud_config
from .curriculum import CurriculumStore, roster_for
from .errors import CloudConfigError, NoActiveSessionError
from .ledger import ActivityLog, ParticipationLedger
from .picker import Picker
from .schemas import CloudConfig, SessionInfo
from .storage import CLOUD_CONFIG_KEY, LocalStore

logger = logging.getLogger(__name__)


class ClassroomServices:
	def __init__(
		self,
		session_factory: Callable[[], Session],
		*,
		cloud: Optional[CloudClient] = None,
		rng: Optional[random.Random] = None,
		clock: Callable[[], float] = time.monotonic,
		wall_clock: Callable[[], float] = time.time,
	) -> None:
		self.store = LocalStore(session_factory)
		self.cloud = cloud or CloudClient()
		self.ledger = ParticipationLedger(self.store, self.cloud)
		self.activities = ActivityLog(self.store, self.cloud)
		self.curriculum = CurriculumStore(self.store, self.cloud)
		self.rng = rng or random.Random()
		self.clock = clock
		self.wall_clock = wall_clock
		self.session: Optional[SessionInfo] = None
		self.picker: Optional[Picker] = None

	# ---- session / picker ----

	def start_session(self, session: SessionInfo) -> Picker:
		self.session = session
		self.picker = Picker(
			session,
			roster_for(session.grade),
			self.curriculum.special_needs(session.grade),
			self.ledger,
			rng=self.rng,
			clock=self.clock,
			wall_clock=self.wall_clock,
		)
		logger.info("Class session started", extra={"context": session.to_json_dict()})
		return self.picker

	def require_picker(self) -> Picker:
		if self.picker is None:
			raise NoActiveSessionError("Start a class session first")
		return self.picker

	def refresh_picker(self) -> None:
		# Profile edits can change special-needs weighting for the running session
		if self.picker is not None:
			grade = self.picker.session.grade
			self.picker.reconfigure(roster_for(grade), self.curriculum.special_needs(grade))

	# ---- cloud ----

	def saved_cloud_config(self) -> Optional[CloudConfig]:
		raw = self.store.get_raw(CLOUD_CONFIG_KEY)
		if not raw:
			return None
		try:
			return parse_cloud_config(raw)
		except CloudConfigError as err:
			logger.warning("Saved cloud config is unusable, staying local-only", extra={"context": {"error": err.message}})
			return None

	def save_cloud_config(self, text: str) -> CloudConfig:
		config = parse_cloud_config(text)
		self.store.set_json(CLOUD_CONFIG_KEY, config.to_json_dict())
		self.cloud.connect(config)
		return config

	async def pull_from_cloud(self) -> dict:
		"""Replace local copies with whatever the cloud holds."""
		ok, error = await self.cloud.check_access()
		if not ok:
			return {"ok": False, "error": error}
		loaded = {"curriculum": False, "participation": 0, "activities": 0}
		cloud_curriculum = await self.cloud.get_curriculum()
		if cloud_curriculum:
			loaded["curriculum"] = self.curriculum.replace_from_cloud(cloud_curriculum) is not None
		participation = self.ledger.parse_many(await self.cloud.get_all_records(self.ledger.collection))
		self.ledger.replace_all(participation)
		loaded["participation"] = len(participation)
		activities = self.activities.parse_many(await self.cloud.get_all_records(self.activities.collection))
		self.activities.replace_all(activities)
		loaded["activities"] = len(activities)
		self.refresh_picker()
		return {"ok": True, **loaded}


def get_services(request: Request) -> ClassroomServices:
	return request.app.state.services
