"""Context search client: style guidance snippets for caption prompts.

Lookups here are best effort. Whatever goes wrong (missing key, network,
non-2xx status, unexpected body) is logged and resolved to an empty string,
so caption generation carries on without context.
"""

import json
from typing import Any, Literal, overload

import httpx
from typing_extensions import TypedDict

from caption_agent.logging import ServiceLogger
from caption_agent.models import ContextSearchConfig, ContextSearchResult

_LOGGER_NAME = "caption_agent.context"
_SERVICE = "alchemyst"
_SEARCH_PATH = "/api/v1/context/search"


class ContextSearchPayload(TypedDict):
    """Body of a context search request."""

    query: str
    similarity_threshold: float
    minimum_similarity_threshold: float
    scope: str
    metadata: None


def join_contexts(contexts: list[Any]) -> str:
    """Join search hits into a single block separated by blank lines.

    A hit without usable ``content`` is included as its compact JSON form.
    """
    chunks: list[str] = []
    for item in contexts:
        content = item.get("content") if isinstance(item, dict) else None
        if content:
            chunks.append(str(content))
        else:
            chunks.append(json.dumps(item, separators=(",", ":"), ensure_ascii=False))
    return "\n\n".join(chunks)


class ContextRetriever:
    """Client for the context search service."""

    def __init__(self, config: ContextSearchConfig) -> None:
        self.config = config
        self._sync_client: httpx.Client | None = None
        self._async_client: httpx.AsyncClient | None = None
        self._logger = ServiceLogger(_SERVICE, None, _LOGGER_NAME)

    @overload
    def _get_client(self, client_type: Literal["async"]) -> httpx.AsyncClient: ...

    @overload
    def _get_client(self, client_type: Literal["sync"]) -> httpx.Client: ...

    def _get_client(
        self, client_type: Literal["sync", "async"]
    ) -> httpx.Client | httpx.AsyncClient:
        """Get or create the httpx client for ``client_type``."""
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        timeout = httpx.Timeout(self.config.timeout)

        if client_type == "async":
            if self._async_client is None:
                self._logger.debug("Creating new async httpx client")
                self._async_client = httpx.AsyncClient(
                    base_url=self.config.base_url, headers=headers, timeout=timeout
                )
            return self._async_client

        if self._sync_client is None:
            self._logger.debug("Creating new sync httpx client")
            self._sync_client = httpx.Client(
                base_url=self.config.base_url, headers=headers, timeout=timeout
            )
        return self._sync_client

    def build_payload(self, query: str) -> ContextSearchPayload:
        return {
            "query": query,
            "similarity_threshold": self.config.similarity_threshold,
            "minimum_similarity_threshold": self.config.minimum_similarity_threshold,
            "scope": self.config.scope,
            "metadata": None,
        }

    def _parse_response(self, response: httpx.Response) -> ContextSearchResult:
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected context search body: {type(body).__name__}")

        contexts = body.get("contexts") or []
        if not isinstance(contexts, list):
            raise ValueError("'contexts' is not a list")

        return ContextSearchResult(
            ok=True, text=join_contexts(contexts), num_contexts=len(contexts)
        )

    def _on_failure(self, query: str, ex: Exception) -> ContextSearchResult:
        extra: dict[str, Any] = {"query": query, "error_type": type(ex).__name__}
        if isinstance(ex, httpx.HTTPStatusError):
            extra["status_code"] = ex.response.status_code
        self._logger.warning(f"Context search failed: {ex}", extra, exc_info=True)
        return ContextSearchResult.failure(f"{type(ex).__name__}: {ex}")

    def _missing_key(self, query: str) -> ContextSearchResult:
        self._logger.warning(
            "Context search skipped: no API key configured", {"query": query}
        )
        return ContextSearchResult.failure("missing API key")

    def search(self, query: str) -> ContextSearchResult:
        """Search for context snippets matching ``query``. Never raises."""
        if not self.config.api_key:
            return self._missing_key(query)

        try:
            client = self._get_client("sync")
            response = client.post(_SEARCH_PATH, json=self.build_payload(query))
            result = self._parse_response(response)
        except Exception as ex:
            return self._on_failure(query, ex)

        self._logger.debug(
            "Context search completed",
            {"query": query, "num_contexts": result.num_contexts},
        )
        return result

    async def search_async(self, query: str) -> ContextSearchResult:
        """Async variant of :meth:`search`. Never raises."""
        if not self.config.api_key:
            return self._missing_key(query)

        try:
            client = self._get_client("async")
            response = await client.post(_SEARCH_PATH, json=self.build_payload(query))
            result = self._parse_response(response)
        except Exception as ex:
            return self._on_failure(query, ex)

        self._logger.debug(
            "Context search completed",
            {"query": query, "num_contexts": result.num_contexts},
        )
        return result

    def search_context(self, query: str) -> str:
        """Joined context text for ``query``, or ``""`` when there is none."""
        return self.search(query).text

    async def search_context_async(self, query: str) -> str:
        return (await self.search_async(query)).text
