"""
Local persistent key/value storage.

Values are JSON strings kept in the ``stored_values`` table. Reads never
raise on bad content: a missing or corrupt value yields the caller's fallback
and a warning in the log.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from .errors import StorageFullError
from .models import StoredValue

logger = logging.getLogger(__name__)

CURRICULUM_KEY = "curriculum"
PARTICIPATION_KEY = "participationRecords"
ACTIVITY_KEY = "activityRecords"
CLOUD_CONFIG_KEY = "firebaseConfig"

# Same size limit as a browser localStorage quota
DEFAULT_MAX_VALUE_BYTES = 5 * 1024 * 1024


class LocalStore:
	def __init__(self, session_factory: Callable[[], Session], *, max_value_bytes: int = DEFAULT_MAX_VALUE_BYTES) -> None:
		self._session_factory = session_factory
		self.max_value_bytes = max_value_bytes

	def get_raw(self, key: str) -> Optional[str]:
		with self._session_factory() as db:
			row = db.get(StoredValue, key)
			return row.value if row else None

	def set_raw(self, key: str, value: str) -> None:
		if len(value.encode("utf-8")) > self.max_value_bytes:
			raise StorageFullError(f"Storage is full: could not save '{key}'. Delete old records and try again.")
		with self._session_factory() as db:
			try:
				db.merge(StoredValue(key=key, value=value))
				db.commit()
			except OperationalError as err:
				db.rollback()
				if "full" in str(err).lower():
					raise StorageFullError(f"Storage is full: could not save '{key}'.") from err
				raise

	def remove(self, key: str) -> None:
		with self._session_factory() as db:
			row = db.get(StoredValue, key)
			if row is not None:
				db.delete(row)
				db.commit()

	def get_json(self, key: str, fallback: Any) -> Any:
		raw = self.get_raw(key)
		if not raw:
			return fallback
		try:
			return json.loads(raw)
		except (json.JSONDecodeError, TypeError):
			logger.warning("Failed to parse stored JSON, returning fallback", extra={"context": {"key": key}})
			return fallback

	def set_json(self, key: str, value: Any) -> None:
		self.set_raw(key, json.dumps(value))
