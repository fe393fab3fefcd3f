"""Embedding-similarity analysis via an external scoring service.

The service owns the embeddings; this client only ships card text and reads
back scored pairs. Requests are synchronous (requests) and run in a worker
thread so the event loop stays free while the other methods run.
"""

import asyncio
import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cardnet.analysis.base import AnalysisMode
from cardnet.config import settings
from cardnet.models.card import Card

logger = logging.getLogger(__name__)


class HttpSimilarityProvider:
    """Client for the embedding-similarity scoring service."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_concurrent: int | None = None,
        retries: int | None = None,
    ) -> None:
        self.base_url = (base_url or settings.similarity_service_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.similarity_service_api_key
        self.timeout = timeout or settings.similarity_service_timeout
        self.max_concurrent = max_concurrent or settings.similarity_service_max_concurrent
        self.retries = retries if retries is not None else settings.similarity_service_retries

        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._session: requests.Session | None = None

    def _get_session(self) -> requests.Session:
        """Get or create requests session with connection pooling."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Content-Type": "application/json"})
            if self.api_key:
                self._session.headers["Authorization"] = f"Bearer {self.api_key}"
            adapter = HTTPAdapter(
                pool_connections=self.max_concurrent,
                pool_maxsize=self.max_concurrent * 2,
                max_retries=Retry(total=self.retries, backoff_factor=0.5),
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def _sync_analyze(self, payload: dict[str, Any]) -> list[dict]:
        """Synchronous scoring request (runs in thread)."""
        session = self._get_session()
        response = session.post(
            f"{self.base_url}/similarity",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()

        # Accept a bare list or {"suggestions": [...]}
        if isinstance(data, dict):
            data = data.get("suggestions", [])
        if not isinstance(data, list):
            raise ValueError(f"Unexpected similarity response: {str(data)[:200]}")
        return [item for item in data if isinstance(item, dict)]

    async def analyze(self, board_id: str, cards: list[Card], mode: AnalysisMode = "full") -> list[dict]:
        """Ask the service for semantically similar card pairs."""
        if len(cards) < 2:
            return []

        payload = {
            "board_id": board_id,
            "mode": mode,
            "cards": [
                {"id": c.id, "title": c.title, "content": c.content, "tags": list(c.tags)}
                for c in cards
            ],
        }
        async with self._semaphore:
            try:
                results = await asyncio.to_thread(self._sync_analyze, payload)
            except requests.HTTPError as e:
                logger.error(f"Similarity service error: {e.response.status_code} - {e.response.text}")
                raise
            except Exception as e:
                logger.error(f"Similarity request failed: {e}")
                raise

        logger.info(f"Similarity service returned {len(results)} pairs for board {board_id}")
        return results
