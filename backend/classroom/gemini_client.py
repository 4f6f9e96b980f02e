from __future__ import annotations
import json
import logging
import httpx
from typing import Any, Dict, Optional
from .errors import ContentGenerationError
from .settings import settings

logger = logging.getLogger(__name__)


class GeminiClient:
	def __init__(self, api_key: Optional[str] = None, *, base_url: Optional[str] = None, model: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ContentGenerationError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = http_client or httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)
		self._owns_client = http_client is None

	async def generate(self, prompt: str) -> str:
		payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
		return await self._post_payload(payload)

	async def generate_json(self, prompt: str, schema: Dict[str, Any]) -> Any:
		"""Ask for JSON constrained to ``schema`` and return it parsed."""
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": {
				"responseMimeType": "application/json",
				"responseSchema": schema,
			},
		}
		text = await self._post_payload(payload)
		try:
			return json.loads(text)
		except json.JSONDecodeError as err:
			raise ContentGenerationError(f"Model did not return valid JSON: {err.msg}") from err

	async def _post_payload(self, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			logger.error("Gemini returned an error status", extra={"context": {"status": http_err.response.status_code}})
			raise ContentGenerationError(f"Gemini call failed with status {http_err.response.status_code}") from http_err
		except httpx.RequestError as net_err:
			logger.error("Gemini request failed", extra={"context": {"error": str(net_err)}})
			raise ContentGenerationError(f"Gemini request failed: {net_err}") from net_err
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			raise ContentGenerationError(f"Unexpected Gemini response: {r.text[:200]}") from err

	async def aclose(self) -> None:
		if self._owns_client:
			await self._client.aclose()
