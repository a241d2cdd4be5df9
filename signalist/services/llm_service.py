"""Text generation for email copy: Gemini by default, Ollama and LM Studio too.

Provider settings are centralized in signalist.config.settings:
    LLM_PROVIDER   "gemini" | "ollama" | "lmstudio"
    GEMINI_API_KEY required for gemini
    OLLAMA_URL / LMSTUDIO_URL for local models

All providers share one pooled httpx.AsyncClient; the daily job summarizes
for every user back to back over the same pool.
"""

from __future__ import annotations

import time

import httpx

from signalist.config import settings
from signalist.utils.logger import logger

_shared_client: httpx.AsyncClient | None = None


async def _get_shared_client() -> httpx.AsyncClient:
    """Get or create the shared httpx.AsyncClient."""
    global _shared_client  # noqa: PLW0603
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10.0, read=120.0, write=30.0, pool=30.0),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        )
    return _shared_client


async def close_shared_client() -> None:
    global _shared_client  # noqa: PLW0603
    if _shared_client is not None and not _shared_client.is_closed:
        await _shared_client.aclose()
    _shared_client = None


class LLMService:
    """Sends a prompt to the configured provider and returns plain text."""

    def __init__(self) -> None:
        self.provider = settings.LLM_PROVIDER
        self.base_url = settings.LLM_BASE_URL
        self.model = settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.context_size = settings.LLM_CONTEXT_SIZE
        self.api_key = (
            settings.GEMINI_API_KEY if self.provider == "gemini"
            else settings.OPENAI_API_KEY
        )

    async def generate_text(self, prompt: str, *, max_tokens: int | None = None) -> str:
        """Single-turn generation: one user prompt in, plain text out."""
        return await self.chat(system="", user=prompt, max_tokens=max_tokens)

    async def chat(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int | None = None,
    ) -> str:
        """Send one system+user exchange and return the model's text.

        Args:
            system: Optional system instruction ("" for none).
            user: The user message.
            max_tokens: Optional cap on the response length.

        Returns:
            The generated text, or "" when the provider returned none.

        Raises:
            RuntimeError: Gemini selected without GEMINI_API_KEY.
            httpx.HTTPError: transport failure or non-2xx response.
        """
        if self.provider == "gemini":
            url, payload, headers = self._gemini_request(system, user, max_tokens)
            return self.extract_gemini_text(await self._post(url, payload, headers))

        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        if self.provider == "ollama":
            options: dict = {"temperature": self.temperature, "num_ctx": self.context_size}
            if max_tokens:
                options["num_predict"] = max_tokens
            data = await self._post(
                f"{self.base_url}/api/chat",
                {"model": self.model, "messages": messages, "stream": False, "options": options},
            )
            return (data.get("message") or {}).get("content") or ""

        payload = {"model": self.model, "messages": messages, "temperature": self.temperature}
        if max_tokens:
            payload["max_tokens"] = max_tokens
        data = await self._post(
            f"{self.base_url}/v1/chat/completions", payload, self._bearer_headers()
        )
        choices = data.get("choices") or [{}]
        return (choices[0].get("message") or {}).get("content") or ""

    def _gemini_request(
        self, system: str, user: str, max_tokens: int | None
    ) -> tuple[str, dict, dict]:
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not configured")

        generation: dict = {"temperature": self.temperature}
        if max_tokens:
            generation["maxOutputTokens"] = max_tokens
        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": user}]}],
            "generationConfig": generation,
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        url = f"{self.base_url}/models/{self.model}:generateContent"
        return url, payload, {"x-goog-api-key": self.api_key}

    def _bearer_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    async def _post(self, url: str, payload: dict, headers: dict | None = None) -> dict:
        logger.info("[LLM] %s request → model=%s", self.provider, self.model)
        t0 = time.perf_counter()

        client = await _get_shared_client()
        resp = await client.post(url, json=payload, headers=headers or {})
        if resp.status_code >= 400:
            logger.error(
                "[LLM] %s returned %d: %s", self.provider, resp.status_code, resp.text[:500]
            )
        resp.raise_for_status()

        logger.info("[LLM] %s done in %.2fs", self.provider, time.perf_counter() - t0)
        return resp.json()

    @staticmethod
    def extract_gemini_text(data: dict) -> str:
        """First text part of the first candidate, or ""."""
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            return ""
        return str(parts[0].get("text") or "")

    async def health_check(self) -> dict:
        """Check that the provider answers and (for local servers) has the model."""
        base = {"provider": self.provider, "configured_model": self.model}
        if self.provider == "gemini" and not self.api_key:
            return {**base, "status": "error", "error": "GEMINI_API_KEY not set"}

        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                if self.provider == "gemini":
                    resp = await client.get(
                        f"{self.base_url}/models/{self.model}",
                        headers={"x-goog-api-key": self.api_key},
                    )
                    resp.raise_for_status()
                    return {**base, "status": "ok"}

                if self.provider == "ollama":
                    resp = await client.get(f"{self.base_url}/api/tags")
                    resp.raise_for_status()
                    models = [m["name"] for m in resp.json().get("models", [])]
                else:
                    resp = await client.get(
                        f"{self.base_url}/v1/models", headers=self._bearer_headers()
                    )
                    resp.raise_for_status()
                    models = [m.get("id", "") for m in resp.json().get("data", [])]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            return {**base, "status": "error", "error": str(e)}

        return {**base, "status": "ok", "models": models, "model_available": self.model in models}
