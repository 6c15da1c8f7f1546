"""Tests for deferred Gemini API key lookup."""

from __future__ import annotations

import asyncio
import importlib
import sys

import httpx
import pytest


def _reload_module(module_name: str):
    """Reload a module, ensuring import-time side effects are rerun."""

    if module_name in sys.modules:
        del sys.modules[module_name]
    return importlib.import_module(module_name)


def test_gemini_module_imports_without_api_key(monkeypatch):
    """The Gemini client module should import even when the key is missing."""

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    module = _reload_module("src.insights.gemini")

    assert module.GEMINI_BASE == "https://generativelanguage.googleapis.com/v1beta"


def test_generate_raises_without_api_key(monkeypatch):
    """Generating an insight should fail only at call time, before any request."""

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    gemini = _reload_module("src.insights.gemini")

    def handler(request):
        pytest.fail("No request should be sent without an API key")

    client = gemini.GeminiClient(transport=httpx.MockTransport(handler))

    with pytest.raises(RuntimeError, match="Missing GEMINI_API_KEY"):
        asyncio.run(client.generate("prompt"))


def test_empty_api_key_is_missing(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "")

    from src.insights.gemini import GeminiClient

    with pytest.raises(RuntimeError, match="Missing GEMINI_API_KEY"):
        asyncio.run(GeminiClient().generate("prompt"))
