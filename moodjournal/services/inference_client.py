"""
Thin async client for hosted inference endpoints (Hugging Face style).

Every call is a single POST of ``{"inputs": ..., "parameters": ...}`` to
``{HF_API_URL}/{model}``. Failures never raise: transport errors, timeouts,
non-2xx statuses and undecodable bodies all come back as an
``InferenceResponse`` with ``ok=False`` so callers can pick their fallback.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from moodjournal.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class InferenceResponse:
    ok: bool
    status_code: Optional[int] = None
    payload: Any = None
    error: Optional[str] = None


class InferenceClient:
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.HF_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.HUGGINGFACE_API_KEY
        self.timeout = timeout if timeout is not None else settings.INFERENCE_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _send(self, url: str, body: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.post(url, json=body, headers=self._headers())

    async def post(
        self,
        model: str,
        inputs: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> InferenceResponse:
        url = f"{self.base_url}/{model}"
        body: Dict[str, Any] = {"inputs": inputs}
        if parameters:
            body["parameters"] = parameters

        # httpx timeouts apply per phase; wait_for bounds the whole call
        try:
            response = await asyncio.wait_for(self._send(url, body), timeout=self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.warning(f"[Inference] {model} timed out after {self.timeout}s")
            return InferenceResponse(ok=False, error="timeout")
        except httpx.HTTPError as e:
            logger.warning(f"[Inference] {model} request failed: {e}")
            return InferenceResponse(ok=False, error=str(e))

        if not response.is_success:
            logger.warning(
                "[Inference] %s returned %d: %s", model, response.status_code, response.text[:200]
            )
            return InferenceResponse(ok=False, status_code=response.status_code, error="bad status")

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"[Inference] {model} returned a non-JSON body")
            return InferenceResponse(ok=False, status_code=response.status_code, error="invalid json")

        logger.debug(f"[Inference] {model} raw response: {str(payload)[:500]}")
        return InferenceResponse(ok=True, status_code=response.status_code, payload=payload)
