"""
Gemini ``generateContent`` client pinned to one response schema.

Only ``candidates[0].content.parts[0].text`` is accepted as the answer.
Replies of any other shape raise :class:`SchemaMismatchError` instead of
being searched for text in alternative locations.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"
API_KEY_ENV_VAR = "GEMINI_API_KEY"


class SchemaMismatchError(RuntimeError):
    """The service replied with a body outside the pinned schema."""


class InsightServiceError(RuntimeError):
    """The service answered with a non-success HTTP status."""

    def __init__(self, status_code: int, details: Any):
        super().__init__(f"Insight service request failed with status {status_code}")
        self.status_code = status_code
        self.details = details


# Pinned response schema
class _Part(BaseModel):
    text: str


class _Content(BaseModel):
    parts: List[_Part] = Field(..., min_length=1)


class _Candidate(BaseModel):
    content: _Content


class GenerateContentResponse(BaseModel):
    candidates: List[_Candidate] = Field(..., min_length=1)

    @property
    def text(self) -> str:
        return self.candidates[0].content.parts[0].text


def _require_api_key() -> str:
    """Fetch the Gemini API key from the environment at call time."""
    api_key = os.getenv(API_KEY_ENV_VAR, "")
    if not api_key:
        raise RuntimeError(
            "Missing GEMINI_API_KEY. Copy .env.sample to .env and set your key before requesting insights."
        )
    return api_key


def parse_generate_content(payload: Any) -> str:
    """
    Extract the answer text from a ``generateContent`` reply.

    Raises:
        SchemaMismatchError: If the payload doesn't match the pinned schema
    """
    try:
        return GenerateContentResponse.model_validate(payload).text
    except ValidationError as exc:
        raise SchemaMismatchError(
            f"Unexpected generateContent response shape: {exc.error_count()} validation error(s)"
        ) from exc


@dataclass
class GenerationConfig:
    temperature: float = 0.7
    candidate_count: int = 1
    max_output_tokens: int = 1024

    def to_payload(self) -> dict:
        return {
            "temperature": self.temperature,
            "candidateCount": self.candidate_count,
            "maxOutputTokens": self.max_output_tokens,
        }


class GeminiClient:
    """Thin async client for text generation."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        *,
        generation: Optional[GenerationConfig] = None,
        base_url: str = GEMINI_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = model
        self.generation = generation or GenerationConfig()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_body(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self.generation.to_payload(),
        }

    async def generate(self, prompt: str) -> str:
        """
        Send ``prompt`` and return the generated text.

        Raises:
            RuntimeError: If GEMINI_API_KEY is not set
            InsightServiceError: On a non-2xx reply
            SchemaMismatchError: If the reply body doesn't match the schema
        """
        api_key = _require_api_key()

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.endpoint,
                params={"key": api_key},
                json=self.build_body(prompt),
                headers={"Content-Type": "application/json"},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            if response.is_success:
                raise SchemaMismatchError("generateContent reply is not JSON") from exc
            payload = response.text

        if not response.is_success:
            logger.warning("Gemini request failed with status %d", response.status_code)
            raise InsightServiceError(response.status_code, payload)

        text = parse_generate_content(payload)
        logger.info("Received %d characters of insight from %s", len(text), self.model)
        return text
