"""Text-generation capabilities backed by OpenAI and Google Gemini.

Clients are built once at startup (see ``enablr.dependencies``) and handed to
the agents that need them. A provider without credentials can still be
constructed; it raises ``ConfigurationError`` when it is first used.
"""

import logging
import os
from typing import Dict, List, Optional, Protocol

import google.generativeai as genai
import openai
from openai import OpenAI

from enablr.errors import ConfigurationError, UpstreamError

logger = logging.getLogger("llm.providers")

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class TextGenerator(Protocol):
    def ensure_configured(self) -> None: ...

    def generate(self, prompt: str, *, system: Optional[str] = None) -> str: ...


class OpenAIChat:
    """Chat-completions wrapper returning the first choice as plain text."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_OPENAI_MODEL,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = OpenAI(api_key=api_key) if api_key else None

    @classmethod
    def from_env(cls) -> "OpenAIChat":
        return cls(
            os.getenv("OPENAI_API_KEY"),
            model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        )

    @property
    def configured(self) -> bool:
        return self._client is not None

    def ensure_configured(self) -> None:
        if self._client is None:
            raise ConfigurationError("OPENAI_API_KEY not configured")

    def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        self.ensure_configured()
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.max_tokens,
            )
        except openai.OpenAIError as exc:
            logger.error("OpenAI request failed (model=%s)", self.model, exc_info=exc)
            raise UpstreamError(f"OpenAI request failed: {exc}") from exc

        if not completion.choices:
            return ""
        return (completion.choices[0].message.content or "").strip()

    def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system.strip()})
        messages.append({"role": "user", "content": prompt})
        text = self.chat(messages)
        if not text:
            raise UpstreamError("No response from OpenAI")
        return text


class GeminiText:
    """Single-prompt generation through ``google-generativeai``."""

    name = "gemini"

    def __init__(self, api_key: Optional[str], *, model: str = DEFAULT_GEMINI_MODEL) -> None:
        self.model_name = model
        self._model = None
        if api_key:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(model)
            logger.info("Gemini API initialized (model=%s)", model)
        else:
            logger.warning("No Gemini API key provided; discovery scoring will be unavailable")

    @classmethod
    def from_env(cls) -> "GeminiText":
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_SEARCH_API_KEY")
        return cls(api_key, model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL))

    @property
    def configured(self) -> bool:
        return self._model is not None

    def ensure_configured(self) -> None:
        if self._model is None:
            raise ConfigurationError("No Google API key found (GEMINI_API_KEY or GOOGLE_SEARCH_API_KEY)")

    def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
        self.ensure_configured()
        if system:
            prompt = f"{system.strip()}\n\n{prompt}"
        try:
            response = self._model.generate_content(prompt)
            # .text raises ValueError when the candidate was blocked
            text = response.text
        except Exception as exc:
            logger.error("Gemini request failed (model=%s)", self.model_name, exc_info=exc)
            raise UpstreamError(f"Gemini request failed: {exc}") from exc
        if not text:
            raise UpstreamError("No response from Gemini")
        return text.strip()
