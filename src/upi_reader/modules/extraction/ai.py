from __future__ import annotations

from typing import Any, Protocol

import httpx

from upi_reader.core.config import settings


class AIExtractionError(Exception):
    """The primary extraction path failed; callers fall back to rule-based extraction."""

    reason = "ai_error"


class AIServiceError(AIExtractionError):
    reason = "service_error"


class AIContractError(AIExtractionError):
    reason = "contract_error"


class AIExtractionClient(Protocol):
    async def generate(self, request: dict[str, Any]) -> str: ...


def upi_ai_available() -> bool:
    return bool(settings.upi_ai_enabled and settings.openai_api_key)


class ChatCompletionsClient:
    """
    Single-shot client for an OpenAI-compatible `/chat/completions` endpoint.

    No retries: one request, and every failure surfaces as AIServiceError.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.url = base_url.rstrip("/") + "/chat/completions"
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def generate(self, request: dict[str, Any]) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.post(self.url, headers=headers, json=request)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AIServiceError(f"AI service returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AIServiceError(f"AI service request failed: {e.__class__.__name__}") from e

        try:
            raw = resp.json()
            msg = raw["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIServiceError("AI service returned an unexpected envelope") from e

        if not isinstance(msg, dict):
            raise AIServiceError("AI service returned an unexpected envelope")
        if msg.get("refusal"):
            raise AIServiceError("AI service refused the request")
        content = msg.get("content")
        if not isinstance(content, str) or not content.strip():
            raise AIServiceError("AI service returned an empty reply")
        return content


def get_ai_client() -> AIExtractionClient | None:
    if not upi_ai_available():
        return None
    return ChatCompletionsClient(
        api_key=str(settings.openai_api_key),
        base_url=settings.openai_base_url,
        timeout_seconds=float(settings.upi_ai_timeout_seconds or 30.0),
    )
