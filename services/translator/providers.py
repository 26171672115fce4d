"""Translation providers.

A provider has exactly one capability: turn a ProviderRequest into a
ProviderResult, or fail. Which implementation runs is decided by
configuration through create_provider().
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import ollama
import structlog

from services.ledger.errors import ConfigurationError, ProviderError

from .models import ProviderRequest, ProviderResult
from .prompts import build_translation_prompt

logger = structlog.get_logger()

# Confidence reported by LLM-backed providers, which expose no score of their own.
LLM_CONFIDENCE = 0.9

FIXTURE_TRANSLATIONS: dict[tuple[str, str], dict[str, str]] = {
    ("en", "pt"): {
        "Hello world": "Olá mundo",
        "Hello": "Olá",
        "test": "teste",
        "The system is auditable.": "O sistema é auditável.",
    },
    ("en", "ja"): {
        "Hello world": "こんにちは世界",
        "Hello": "こんにちは",
    },
    ("pt", "en"): {
        "Olá mundo": "Hello world",
        "O sistema é auditável.": "The system is auditable.",
    },
    ("python", "pt"): {
        "def greet(): print('Hello')": "Uma função 'greet' que imprime 'Hello'.",
        "def hello(): return 'world'": "Uma função 'hello' que retorna 'world'.",
    },
    ("python", "en"): {
        "def greet(): print('Hello')": "A function 'greet' that prints 'Hello'.",
    },
}


class TranslationProvider(ABC):
    """Single-capability translation backend."""

    name: str = "provider"

    @abstractmethod
    async def translate(self, request: ProviderRequest) -> ProviderResult:
        """Translate request.text, or raise."""


class FixtureProvider(TranslationProvider):
    """
    Deterministic provider backed by a canned translation table.

    Unknown texts come back as "[MOCK src→tgt] text". Can simulate latency and
    failure for tests and demos.
    """

    name = "mock"

    def __init__(
        self,
        confidence: float = 0.95,
        delay: float = 0.0,
        fail: bool = False,
        translations: Optional[dict[tuple[str, str], dict[str, str]]] = None,
    ):
        self.confidence = confidence
        self.delay = delay
        self.fail = fail
        self.translations = FIXTURE_TRANSLATIONS if translations is None else translations
        self.calls: list[ProviderRequest] = []

    async def translate(self, request: ProviderRequest) -> ProviderResult:
        self.calls.append(request)
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderError("Mock translation failed (simulated)")

        table = self.translations.get((request.source_language, request.target_language), {})
        translated = table.get(
            request.text,
            f"[MOCK {request.source_language}→{request.target_language}] {request.text}",
        )
        return ProviderResult(translated_text=translated, confidence=self.confidence)


class OpenAIProvider(TranslationProvider):
    """Chat-completions backed provider."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com",
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def translate(self, request: ProviderRequest) -> ProviderResult:
        prompt = build_translation_prompt(request.source_language, request.target_language, request.text)

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "model": self.model,
                        "messages": [{"role": "user", "content": prompt}],
                    },
                )
        except httpx.HTTPError as e:
            logger.error("provider_unreachable", provider=self.name, error=str(e))
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if response.is_error:
            logger.error("provider_rejected", provider=self.name, status=response.status_code)
            raise ProviderError(
                f"OpenAI error: {response.status_code} {response.reason_phrase} - {response.text}"
            )

        try:
            choices = response.json().get("choices") or [{}]
            content = (choices[0].get("message") or {}).get("content") or ""
        except (ValueError, AttributeError) as e:
            raise ProviderError(f"Malformed response from OpenAI: {e}") from e

        translated = content.strip()
        if not translated:
            raise ProviderError("Empty translation from OpenAI")

        logger.debug("provider_response_received", provider=self.name, response_length=len(translated))
        return ProviderResult(translated_text=translated, confidence=LLM_CONFIDENCE)


class OllamaProvider(TranslationProvider):
    """Local LLM provider using an Ollama server."""

    name = "ollama"

    def __init__(self, host: str = "http://ollama:11434", model: str = "llama3.1:8b", client=None):
        self.host = host
        self.model = model
        self.client = client or ollama.AsyncClient(host=host)

    async def translate(self, request: ProviderRequest) -> ProviderResult:
        prompt = build_translation_prompt(request.source_language, request.target_language, request.text)

        try:
            response = await self.client.generate(
                model=self.model,
                prompt=prompt,
                options={"temperature": 0.0}
            )
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.error("provider_unreachable", provider=self.name, host=self.host, error=str(e))
            raise ProviderError(f"Ollama request failed: {e}") from e

        translated = (response["response"] or "").strip()
        if not translated:
            raise ProviderError("Empty translation from Ollama")

        logger.debug("provider_response_received", provider=self.name, response_length=len(translated))
        return ProviderResult(translated_text=translated, confidence=LLM_CONFIDENCE)


def create_provider(settings) -> TranslationProvider:
    """Instantiate the provider selected by settings.llm_provider."""
    if settings.llm_provider == "mock":
        return FixtureProvider()
    if settings.llm_provider == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
        )
    if settings.llm_provider == "ollama":
        return OllamaProvider(host=settings.ollama_host, model=settings.ollama_model)
    raise ConfigurationError(f"Unknown LLM provider: {settings.llm_provider}")
