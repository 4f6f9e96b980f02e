"""
Remote document store (Firestore over REST).

The client is created empty by the application and connected explicitly with
a saved configuration. Every write is best effort: failures are logged and
reported as ``False`` but never raised, so the local store stays the system
of record for the running session.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .errors import CloudConfigError
from .schemas import CloudConfig
from .settings import settings

logger = logging.getLogger(__name__)

CURRICULUM_DOC = ("school", "curriculum")
PARTICIPATION_COLLECTION = "participation"
ACTIVITY_COLLECTION = "activities"

PERMISSION_DENIED = "permission-denied"
PERMISSION_BANNER = "DATABASE LOCKED: Please update Firestore rules to 'allow read, write: if true;'"


def parse_cloud_config(text: str) -> CloudConfig:
	"""Strictly parse a pasted config blob. Anything but valid JSON with apiKey and projectId is rejected."""
	try:
		data = json.loads((text or "").strip())
	except json.JSONDecodeError as err:
		raise CloudConfigError(f"Configuration is not valid JSON: {err.msg} (line {err.lineno}, column {err.colno})")
	if not isinstance(data, dict):
		raise CloudConfigError("Configuration must be a JSON object")
	try:
		return CloudConfig.model_validate(data)
	except ValidationError as err:
		missing = ", ".join(str(e["loc"][0]) for e in err.errors())
		raise CloudConfigError(f"Invalid config: missing or empty {missing}")


# ---- Firestore typed value codec ----

def encode_value(value: Any) -> Dict[str, Any]:
	if value is None:
		return {"nullValue": None}
	if isinstance(value, bool):
		return {"booleanValue": value}
	if isinstance(value, int):
		return {"integerValue": str(value)}
	if isinstance(value, float):
		return {"doubleValue": value}
	if isinstance(value, str):
		return {"stringValue": value}
	if isinstance(value, (list, tuple)):
		return {"arrayValue": {"values": [encode_value(v) for v in value]}}
	if isinstance(value, dict):
		return {"mapValue": {"fields": encode_fields(value)}}
	raise TypeError(f"Cannot store value of type {type(value).__name__}")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
	return {str(k): encode_value(v) for k, v in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
	if "nullValue" in value:
		return None
	if "booleanValue" in value:
		return bool(value["booleanValue"])
	if "integerValue" in value:
		return int(value["integerValue"])
	if "doubleValue" in value:
		return float(value["doubleValue"])
	if "stringValue" in value:
		return value["stringValue"]
	if "timestampValue" in value:
		return value["timestampValue"]
	if "arrayValue" in value:
		return [decode_value(v) for v in value["arrayValue"].get("values", [])]
	if "mapValue" in value:
		return decode_fields(value["mapValue"].get("fields", {}))
	return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
	return {k: decode_value(v) for k, v in fields.items()}


def chunked(items: List[Any], size: int) -> Iterable[List[Any]]:
	for start in range(0, len(items), size):
		yield items[start : start + size]


class CloudClient:
	def __init__(self, *, http_client: Optional[httpx.AsyncClient] = None, batch_size: Optional[int] = None) -> None:
		self.config: Optional[CloudConfig] = None
		self.batch_size = batch_size or settings.cloud_batch_size
		self._client = http_client
		self._owns_client = http_client is None
		# Operator-facing message when the store is reachable but refuses access
		self.banner: Optional[str] = None

	def connect(self, config: CloudConfig) -> bool:
		self.config = config
		self.banner = None
		if self._client is None:
			self._client = httpx.AsyncClient(timeout=settings.cloud_timeout_seconds)
			self._owns_client = True
		logger.info("Cloud store configured", extra={"context": {"project_id": config.project_id}})
		return True

	def is_connected(self) -> bool:
		return self.config is not None and self._client is not None

	def is_writable(self) -> bool:
		return self.is_connected() and self.banner is None

	async def aclose(self) -> None:
		if self._client is not None and self._owns_client:
			await self._client.aclose()
		self._client = None

	# ---- URL helpers ----

	@property
	def _database_path(self) -> str:
		return f"projects/{self.config.project_id}/databases/(default)/documents"

	def _doc_name(self, collection: str, doc_id: str) -> str:
		return f"{self._database_path}/{collection}/{doc_id}"

	def _doc_url(self, collection: str, doc_id: str) -> str:
		return f"{settings.firestore_base_url}/{self._database_path}/{collection}/{quote(doc_id, safe='')}"

	def _params(self, **extra: Any) -> Dict[str, Any]:
		return {"key": self.config.api_key, **extra}

	# ---- access check ----

	async def check_access(self) -> Tuple[bool, Optional[str]]:
		if not self.is_connected():
			return False, "Cloud store not configured"
		try:
			r = await self._client.get(self._doc_url(*CURRICULUM_DOC), params=self._params())
		except httpx.RequestError as err:
			return False, f"network-error: {err}"
		if r.status_code in (401, 403):
			self.banner = PERMISSION_BANNER
			return False, PERMISSION_DENIED
		if r.status_code >= 400 and r.status_code != 404:
			return False, f"http-{r.status_code}"
		self.banner = None
		return True, None

	# ---- documents ----

	async def _get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
		r = await self._client.get(self._doc_url(collection, doc_id), params=self._params())
		if r.status_code == 404:
			return None
		r.raise_for_status()
		return decode_fields(r.json().get("fields", {}))

	async def _set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
		r = await self._client.patch(
			self._doc_url(collection, doc_id),
			params=self._params(),
			json={"fields": encode_fields(data)},
		)
		r.raise_for_status()

	async def _list_collection(self, collection: str) -> List[Dict[str, Any]]:
		url = f"{settings.firestore_base_url}/{self._database_path}/{collection}"
		docs: List[Dict[str, Any]] = []
		page_token: Optional[str] = None
		while True:
			params = self._params(pageSize=300)
			if page_token:
				params["pageToken"] = page_token
			r = await self._client.get(url, params=params)
			r.raise_for_status()
			data = r.json()
			docs.extend(decode_fields(d.get("fields", {})) for d in data.get("documents", []))
			page_token = data.get("nextPageToken")
			if not page_token:
				return docs

	async def _commit(self, writes: List[Dict[str, Any]]) -> None:
		url = f"{settings.firestore_base_url}/{self._database_path}:commit"
		r = await self._client.post(url, params=self._params(), json={"writes": writes})
		r.raise_for_status()

	# ---- curriculum ----

	async def get_curriculum(self) -> Optional[Dict[str, Any]]:
		if not self.is_connected():
			return None
		try:
			return await self._get_document(*CURRICULUM_DOC)
		except Exception:
			logger.exception("Error fetching curriculum from cloud")
			return None

	async def save_curriculum(self, curriculum: Dict[str, Any]) -> bool:
		if not self.is_writable():
			return False
		try:
			await self._set_document(*CURRICULUM_DOC, curriculum)
			return True
		except Exception:
			logger.exception("Error saving curriculum to cloud")
			return False

	# ---- flat collections keyed by record id ----

	async def save_record(self, collection: str, record: Dict[str, Any]) -> bool:
		if not self.is_writable():
			return False
		try:
			await self._set_document(collection, record["id"], record)
			return True
		except Exception:
			logger.exception("Error saving record to cloud", extra={"context": {"collection": collection, "id": record.get("id")}})
			return False

	async def delete_records(self, collection: str, record_ids: List[str]) -> bool:
		if not self.is_writable() or not record_ids:
			return False
		try:
			for chunk in chunked(record_ids, self.batch_size):
				await self._commit([{"delete": self._doc_name(collection, rid)} for rid in chunk])
			return True
		except Exception:
			logger.exception("Error deleting records from cloud", extra={"context": {"collection": collection, "count": len(record_ids)}})
			return False

	async def get_all_records(self, collection: str) -> List[Dict[str, Any]]:
		if not self.is_connected():
			return []
		try:
			return await self._list_collection(collection)
		except Exception:
			logger.exception("Error fetching records from cloud", extra={"context": {"collection": collection}})
			return []

	async def save_participation(self, record: Dict[str, Any]) -> bool:
		return await self.save_record(PARTICIPATION_COLLECTION, record)

	async def save_activity(self, record: Dict[str, Any]) -> bool:
		return await self.save_record(ACTIVITY_COLLECTION, record)

	# ---- bulk upload ----

	async def upload_local_data(
		self,
		curriculum: Dict[str, Any],
		participation: List[Dict[str, Any]],
		activities: List[Dict[str, Any]],
	) -> bool:
		if not self.is_connected():
			logger.error("Cloud store not configured during upload")
			return False
		try:
			await self._set_document(*CURRICULUM_DOC, curriculum)
			for collection, records in ((PARTICIPATION_COLLECTION, participation), (ACTIVITY_COLLECTION, activities)):
				for chunk in chunked(records, self.batch_size):
					writes = [
						{"update": {"name": self._doc_name(collection, r["id"]), "fields": encode_fields(r)}}
						for r in chunk
					]
					await self._commit(writes)
				logger.info("Uploaded records to cloud", extra={"context": {"collection": collection, "count": len(records)}})
			return True
		except Exception:
			logger.exception("Error uploading local data to cloud")
			return False
