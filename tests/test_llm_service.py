"""Tests for LLMService request shaping and response parsing.

The shared httpx client is swapped for one backed by httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from signalist.config import settings
from signalist.services import llm_service
from signalist.services.llm_service import LLMService


@pytest.fixture()
def mock_transport(monkeypatch):
    """Install a MockTransport-backed shared client; yields the captured requests."""
    captured: list[httpx.Request] = []
    responses: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        for suffix, body in responses.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=body)
        return httpx.Response(404)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(llm_service, "_shared_client", client)
    yield captured, responses
    monkeypatch.setattr(llm_service, "_shared_client", None)


class TestGeminiParsing:

    def test_extracts_first_text_part(self) -> None:
        data = {"candidates": [{"content": {"parts": [{"text": "hello"}, {"text": "x"}]}}]}
        assert LLMService.extract_gemini_text(data) == "hello"

    @pytest.mark.parametrize(
        "data",
        [{}, {"candidates": []}, {"candidates": [{"content": {}}]},
         {"candidates": [{"content": {"parts": [{}]}}]}],
    )
    def test_missing_text_is_empty(self, data) -> None:
        assert LLMService.extract_gemini_text(data) == ""


class TestProviders:

    def test_gemini_request(self, monkeypatch, mock_transport) -> None:
        captured, responses = mock_transport
        monkeypatch.setattr(settings, "LLM_PROVIDER", "gemini")
        monkeypatch.setattr(settings, "LLM_MODEL", "gemini-2.0-flash-exp")
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "g-key")
        responses[":generateContent"] = {
            "candidates": [{"content": {"parts": [{"text": "digest"}]}}]
        }

        text = asyncio.run(LLMService().generate_text("summarize this"))

        assert text == "digest"
        req = captured[0]
        assert req.url.path.endswith("/models/gemini-2.0-flash-exp:generateContent")
        assert req.headers["x-goog-api-key"] == "g-key"
        body = json.loads(req.content)
        assert body["contents"] == [{"role": "user", "parts": [{"text": "summarize this"}]}]
        assert "systemInstruction" not in body

    def test_gemini_without_key_raises(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "LLM_PROVIDER", "gemini")
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
        with pytest.raises(RuntimeError):
            asyncio.run(LLMService().generate_text("x"))

    def test_ollama_request(self, monkeypatch, mock_transport) -> None:
        captured, responses = mock_transport
        monkeypatch.setattr(settings, "LLM_PROVIDER", "ollama")
        monkeypatch.setattr(settings, "LLM_MODEL", "gemma3:27b")
        responses["/api/chat"] = {"message": {"content": "ok"}}

        text = asyncio.run(LLMService().chat("be brief", "hi", max_tokens=50))

        assert text == "ok"
        body = json.loads(captured[0].content)
        assert body["messages"][0] == {"role": "system", "content": "be brief"}
        assert body["options"]["num_predict"] == 50
        assert body["stream"] is False

    def test_lmstudio_request(self, monkeypatch, mock_transport) -> None:
        captured, responses = mock_transport
        monkeypatch.setattr(settings, "LLM_PROVIDER", "lmstudio")
        responses["/v1/chat/completions"] = {"choices": [{"message": {"content": "done"}}]}

        assert asyncio.run(LLMService().generate_text("hi")) == "done"
        assert captured[0].url.path == "/v1/chat/completions"


class TestHealthCheck:

    def test_gemini_without_key(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "LLM_PROVIDER", "gemini")
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
        status = asyncio.run(LLMService().health_check())
        assert status["status"] == "error"
        assert status["provider"] == "gemini"
