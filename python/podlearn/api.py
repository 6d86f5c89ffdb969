from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import ClientConfig
from .models import AnalysisResult, Episode, Transcript
from .parsing import parse_analysis, parse_generation_response, parse_segments

LOGGER = logging.getLogger(__name__)


class ApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def _json_or_error(response: httpx.Response, *, action: str) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ApiError(f"{action}: svaret er ikke gyldig JSON", status_code=response.status_code) from exc

    if not response.is_success:
        message = payload.get("error") if isinstance(payload, dict) else None
        code = payload.get("code") if isinstance(payload, dict) else None
        raise ApiError(
            f"{action} fejlede ({response.status_code}): {message or response.reason_phrase}",
            status_code=response.status_code,
            code=code,
        )
    if not isinstance(payload, dict):
        raise ApiError(f"{action}: forventede et JSON-objekt", status_code=response.status_code)
    return payload


class LearningApi:
    """Async client for the learning backend and the transcript CDN."""

    def __init__(self, config: ClientConfig, client: httpx.AsyncClient):
        self.config = config
        self._client = client

    def _headers(self) -> dict[str, str]:
        if not self.config.auth_token:
            return {}
        return {"Authorization": f"Bearer {self.config.auth_token}"}

    def _url(self, path: str) -> str:
        return f"{self.config.api_base}{path}"

    async def fetch_cached_transcript(self, key: str) -> Transcript:
        """Fetch ``{cdn}/transcripts/{key}.json``; any failure raises."""

        url = f"{self.config.cdn_base}/transcripts/{key}.json"
        response = await self._client.get(url, timeout=self.config.request_timeout_sec)
        if not response.is_success:
            raise ApiError(f"CDN-opslag fejlede ({response.status_code})", status_code=response.status_code)
        return parse_segments(response.json())

    async def generate_transcript(self, episode: Episode, key: str) -> Transcript:
        response = await self._client.post(
            self._url("/ai/transcript"),
            json={
                "episodeId": key,
                "audioUrl": episode.audio_url,
                "title": episode.title,
                "targetLanguage": self.config.target_language,
            },
            headers=self._headers(),
            timeout=self.config.generation_timeout_sec,
        )
        payload = _json_or_error(response, action="Transcript-generering")
        return parse_generation_response(payload)

    async def check_transcript(self, key: str) -> Transcript | None:
        response = await self._client.get(
            self._url(f"/ai/transcript/{key}"),
            headers=self._headers(),
            timeout=self.config.request_timeout_sec,
        )
        payload = _json_or_error(response, action="Transcript-tjek")
        if not payload.get("exists"):
            return None
        return parse_segments(payload.get("data") or {})

    async def delete_transcript(self, key: str) -> None:
        response = await self._client.delete(
            self._url(f"/ai/transcript/{key}"),
            headers=self._headers(),
            timeout=self.config.request_timeout_sec,
        )
        payload = _json_or_error(response, action="Sletning af transcript-cache")
        if not payload.get("success"):
            raise ApiError(str(payload.get("error") or "Sletning af transcript-cache fejlede"))

    async def analyze_sentence(self, text: str, *, context: str = "") -> AnalysisResult:
        body: dict[str, Any] = {"text": text, "sentence": text, "language": self.config.target_language}
        if context:
            body["context"] = context
        response = await self._client.post(
            self._url("/ai/analyze"),
            json=body,
            headers=self._headers(),
            timeout=self.config.request_timeout_sec,
        )
        payload = _json_or_error(response, action="Sætningsanalyse")
        if not payload.get("success"):
            raise ApiError(str(payload.get("error") or "Sætningsanalyse fejlede"))
        return parse_analysis(payload.get("data"))

    async def track_view(self, episode: Episode, key: str) -> None:
        response = await self._client.post(
            self._url("/podcasts/view"),
            json={
                "guid": episode.guid or key,
                "title": episode.title,
                "audioUrl": episode.audio_url,
                "duration": episode.duration,
                "pubDate": episode.pub_date,
                "channel": {"title": episode.channel_title or "Unknown"},
            },
            headers=self._headers(),
            timeout=self.config.request_timeout_sec,
        )
        _json_or_error(response, action="Visningsregistrering")

    async def set_like(self, episode: Episode, key: str, liked: bool) -> bool:
        response = await self._client.post(
            self._url("/podcasts/like"),
            json={"episodeId": key, "guid": episode.guid or key, "liked": liked},
            headers=self._headers(),
            timeout=self.config.request_timeout_sec,
        )
        payload = _json_or_error(response, action="Like")
        if not payload.get("success"):
            raise ApiError(str(payload.get("error") or "Like fejlede"))
        return bool(payload.get("isLiked", liked))
