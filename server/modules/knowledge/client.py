"""Knowledge base API client and raw guide fetching."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from shared.errors import KnowledgeUnavailableError

logger = structlog.get_logger()


class SearchResult(BaseModel):
    id: str
    name: str = ""
    type: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    score: float = 0.0


class SearchResponse(BaseModel):
    count: int = 0
    query: str = ""
    results: list[SearchResult] = Field(default_factory=list)


class KnowledgeItem(BaseModel):
    id: str
    name: str = ""
    type: str = ""
    content: Any = None


class KnowledgeClient:
    """Async client for the knowledge search service."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _send(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(method, f"{self.base_url}{path}", json=json)
        except httpx.TimeoutException:
            logger.warning("knowledge_api_timeout", path=path)
            raise KnowledgeUnavailableError(f"{self.base_url} did not answer within {self.timeout:g}s")
        except httpx.RequestError as e:
            logger.warning("knowledge_api_unreachable", path=path, error=str(e))
            raise KnowledgeUnavailableError(f"{self.base_url} is not responding ({e.__class__.__name__})")

    @staticmethod
    def _decode(resp: httpx.Response, model: type[BaseModel]) -> Any:
        if resp.status_code != 200:
            raise KnowledgeUnavailableError(f"API returned status {resp.status_code}: {resp.text[:200]}")
        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError):
            raise KnowledgeUnavailableError("API returned an unreadable response")

    async def search(self, query: str, limit: int = 10) -> SearchResponse:
        resp = await self._send("POST", "/api/v1/search", json={"query": query, "limit": limit})
        return self._decode(resp, SearchResponse)

    async def get(self, knowledge_id: str) -> KnowledgeItem | None:
        """Fetch one item by ``category/name`` id. None when it does not exist."""
        resp = await self._send("GET", f"/api/v1/knowledge/{quote(knowledge_id, safe='/')}")
        if resp.status_code == 404:
            return None
        return self._decode(resp, KnowledgeItem)


async def fetch_text(url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> str:
    """GET a document as text. Raises ``httpx.HTTPError`` on any failure."""
    async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.text
