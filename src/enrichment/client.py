"""
Enrichment API client.

Posts normalization prompts to the Anthropic Messages API with a primary
and a fallback model. HTTP failures are classified into EnrichmentError
(surfaced) or a soft None (caller falls back to structured data):

    429                              -> rate_limited (retryable)
    529                              -> next model, or models_exhausted (fatal) on the last one
    400/404 mentioning model/billing -> api_error (fatal)
    other non-2xx                    -> None
    transport error                  -> next model on the first attempt, else unreachable (fatal)
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import requests
from loguru import logger

from config.settings import AnthropicSettings, get_settings
from src.enrichment.exceptions import EnrichmentError

enrichment_log = logger.bind(module="Enrichment")

FATAL_ERROR_MARKERS = ("model", "credit balance", "billing")
STATUS_RATE_LIMITED = 429
STATUS_OVERLOADED = 529


class _NextModel(Exception):
    """Internal signal to move on to the fallback model."""


class EnrichmentClient:
    """Blocking HTTP client for the Messages API, exposed as async."""

    def __init__(
        self,
        settings: Optional[AnthropicSettings] = None,
        session: Optional[requests.Session] = None,
        max_workers: int = 2,
    ):
        """
        Initialize the client.

        Args:
            settings: Anthropic settings (defaults to application settings)
            session: requests session to send through
            max_workers: Thread pool size for concurrent calls
        """
        self._settings = settings or get_settings().anthropic
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    @property
    def models(self) -> list[str]:
        """Models to try in order, without duplicates."""
        candidates = [self._settings.model, self._settings.fallback_model]
        return list(dict.fromkeys(m for m in candidates if m))

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._settings.api_key,
            "anthropic-version": self._settings.api_version,
            "content-type": "application/json",
        }

    async def complete(self, system: str, user: str) -> Optional[str]:
        """
        Send one prompt, trying the fallback model when allowed.

        Args:
            system: System prompt
            user: User message

        Returns:
            Response text, or None on a soft failure

        Raises:
            EnrichmentError: Rate limit, overload or transport failure on the
                last model, fatal API error or missing API key
        """
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self._executor, self.complete_sync, system, user)

    def complete_sync(self, system: str, user: str) -> Optional[str]:
        """Blocking variant of complete()."""
        if not self._settings.api_key:
            raise EnrichmentError.missing_api_key()

        models = self.models
        for idx, model in enumerate(models):
            has_fallback = idx < len(models) - 1
            try:
                return self._send(model, system, user, has_fallback)
            except _NextModel:
                enrichment_log.warning(f"Model {model} unavailable, trying {models[idx + 1]}")
                continue

        return None

    def _send(self, model: str, system: str, user: str, has_fallback: bool) -> Optional[str]:
        payload = {
            "model": model,
            "max_tokens": self._settings.max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }

        try:
            resp = self._session.post(
                self._settings.api_url,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.timeout,
            )
        except requests.RequestException as e:
            enrichment_log.error(f"Enrichment request failed ({model}): {e}")
            if has_fallback:
                raise _NextModel() from e
            raise EnrichmentError.unreachable(str(e)) from e

        if not 200 <= resp.status_code < 300:
            self._classify_error(resp, model, has_fallback)
            return None

        return self._content(resp, model)

    def _classify_error(self, resp: requests.Response, model: str, has_fallback: bool) -> None:
        """Raise for surfaced errors; return for soft failures."""
        status = resp.status_code
        message = _error_message(resp)
        enrichment_log.error(f"Enrichment API returned {status} ({model}): {message[:300]}")

        if status == STATUS_RATE_LIMITED:
            raise EnrichmentError.rate_limited(message)

        if status == STATUS_OVERLOADED:
            if has_fallback:
                raise _NextModel()
            raise EnrichmentError.models_exhausted(message)

        if status in (400, 404) and any(marker in message for marker in FATAL_ERROR_MARKERS):
            raise EnrichmentError.api_error(status, message)

    def _content(self, resp: requests.Response, model: str) -> Optional[str]:
        try:
            data = resp.json()
        except ValueError:
            enrichment_log.error(f"Enrichment API returned non-JSON body ({model})")
            return None

        content = data.get("content") if isinstance(data, dict) else None
        text = None
        if isinstance(content, list) and content and isinstance(content[0], dict):
            text = content[0].get("text")

        if not text:
            enrichment_log.error(f"Enrichment API returned empty content ({model})")
            return None
        return text

    def close(self) -> None:
        """Release the session and thread pool."""
        self._session.close()
        self._executor.shutdown(wait=False)


def _error_message(resp: requests.Response) -> str:
    try:
        data: Any = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or resp.text)
    return resp.text
