"""
Append-only record logs kept in the local store and mirrored to the cloud.

Records are held in memory once loaded and every change lands there first,
so a failed local write (storage full) raises without losing what the class
has already earned. The cloud copy is handed to FastAPI background tasks when
the caller supplies them; if that later fails it is logged by the cloud
client and nothing is rolled back.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from fastapi import BackgroundTasks
from pydantic import BaseModel, ValidationError

from .cloud import ACTIVITY_COLLECTION, PARTICIPATION_COLLECTION, CloudClient
from .schemas import ActivityRecord, ParticipationRecord
from .storage import ACTIVITY_KEY, PARTICIPATION_KEY, LocalStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordLog(Generic[RecordT]):
	storage_key: str
	collection: str
	model: Type[RecordT]

	def __init__(self, store: LocalStore, cloud: Optional[CloudClient] = None) -> None:
		self.store = store
		self.cloud = cloud
		self._records: Optional[List[RecordT]] = None

	def _load_raw(self) -> List[Dict[str, Any]]:
		data = self.store.get_json(self.storage_key, [])
		if not isinstance(data, list):
			logger.warning("Stored records are not a list, ignoring", extra={"context": {"key": self.storage_key}})
			return []
		return data

	def _memory(self) -> List[RecordT]:
		if self._records is None:
			self._records = self.parse_many(self._load_raw())
		return self._records

	def all(self) -> List[RecordT]:
		return list(self._memory())

	def parse_many(self, items: List[Dict[str, Any]]) -> List[RecordT]:
		records: List[RecordT] = []
		for item in items:
			try:
				records.append(self.model.model_validate(item))
			except ValidationError:
				logger.warning("Skipping malformed stored record", extra={"context": {"key": self.storage_key}})
		return records

	def _save(self, records: List[RecordT]) -> None:
		self.store.set_json(self.storage_key, [r.to_json_dict() for r in records])

	def _mirror(self, tasks: Optional[BackgroundTasks], method: str, *args) -> None:
		if tasks is None or self.cloud is None or not self.cloud.is_writable():
			return
		tasks.add_task(getattr(self.cloud, method), *args)

	def append(self, record: RecordT, tasks: Optional[BackgroundTasks] = None) -> RecordT:
		records = self._memory()
		records.append(record)
		# The cloud copy is scheduled even when the local save then fails
		self._mirror(tasks, "save_record", self.collection, record.to_json_dict())
		self._save(records)
		return record

	def replace_all(self, records: List[RecordT]) -> None:
		self._records = list(records)
		self._save(self._records)

	def _remove_where(self, predicate, tasks: Optional[BackgroundTasks]) -> List[RecordT]:
		kept: List[RecordT] = []
		removed: List[RecordT] = []
		for r in self._memory():
			(removed if predicate(r) else kept).append(r)
		if removed:
			self._records = kept
			self._mirror(tasks, "delete_records", self.collection, [r.id for r in removed])
			self._save(kept)
		return removed

	def delete_record(self, record_id: str, tasks: Optional[BackgroundTasks] = None) -> bool:
		return bool(self._remove_where(lambda r: r.id == record_id, tasks))


class ParticipationLedger(RecordLog[ParticipationRecord]):
	storage_key = PARTICIPATION_KEY
	collection = PARTICIPATION_COLLECTION
	model = ParticipationRecord

	def delete_session(self, date: str, grade: str, period: int, tasks: Optional[BackgroundTasks] = None) -> int:
		removed = self._remove_where(lambda r: r.in_session(date, grade, period), tasks)
		logger.info(
			"Session records deleted",
			extra={"context": {"date": date, "grade": grade, "period": period, "removed": len(removed)}},
		)
		return len(removed)


class ActivityLog(RecordLog[ActivityRecord]):
	storage_key = ACTIVITY_KEY
	collection = ACTIVITY_COLLECTION
	model = ActivityRecord

	def for_student(self, name: str) -> List[ActivityRecord]:
		return [r for r in self.all() if r.student_name == name]
