# services/gemini_client.py
from typing import Any, Dict, Optional

import httpx

from medbot import config


class GeminiError(RuntimeError):
    pass


class GeminiClient:
    """Thin client for the Gemini generateContent REST API.

    Exactly one HTTP request per call; callers own any retry policy.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = config.GEMINI_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or config.GEMINI_BASE
        self.api_key = api_key or config.GEMINI_API_KEY
        self.model = model or config.GEMINI_MODEL
        self.timeout = timeout

        if not self.api_key:
            raise GeminiError("GEMINI_API_KEY is not configured")

        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = config.GEMINI_TEMPERATURE,
        max_output_tokens: int = config.GEMINI_MAX_OUTPUT_TOKENS,
        model: Optional[str] = None,
    ) -> str:
        """
        Single non-streaming generation; returns the candidate text.
        Raises GeminiError on any transport, HTTP or parsing failure.
        """
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        path = f"/v1beta/models/{model or self.model}:generateContent"

        try:
            res = await self._client.post(path, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise GeminiError(f"Gemini request failed: {e}") from e

        if res.status_code != 200:
            raise GeminiError(f"HTTP {res.status_code}: {res.text[:200]}")

        try:
            data = res.json()
        except ValueError as e:
            raise GeminiError(f"Invalid JSON from Gemini: {res.text[:200]}") from e

        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback")
            raise GeminiError(f"Empty candidates: {feedback!r}")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text:
            raise GeminiError(f"Invalid content: {candidates[0]!r}")
        return text
