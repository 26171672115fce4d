"""Runtime configuration.

A Settings instance is built once at process start (create_app, CLI main) and
passed to whatever needs it.
"""
from pathlib import Path
from typing import Literal, Optional

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.ledger.errors import ConfigurationError

logger = structlog.get_logger()

ENV_EXAMPLE = """# Translation contract ledger configuration
# Copy this file to .env and adjust.

# LLM provider: mock, ollama or openai
LLM_PROVIDER=mock

# OPENAI_API_KEY=your_key_here
# OPENAI_BASE_URL=https://api.openai.com
# OPENAI_MODEL=gpt-4o-mini
# OLLAMA_HOST=http://ollama:11434
# OLLAMA_MODEL=llama3.1:8b

# Contract signing (optional)
ENABLE_SIGNING=false
# ED25519_PRIVATE_KEY=hex_encoded_pkcs8_private_key
# ED25519_PUBLIC_KEY=hex_encoded_public_key

LEDGER_PATH=./output/contracts.ndjson
LEDGER_FSYNC=true

HOST=0.0.0.0
PORT=8000
# CORS_ORIGINS=["http://localhost:3000"]

DEFAULT_TENANT_ID=default
DEFAULT_WORKFLOW=translation
DEFAULT_FLOW=default
"""

SECRET_FIELDS = ("openai_api_key", "ed25519_private_key")


class Settings(BaseSettings):
    """Settings loaded from environment variables and an optional .env file."""

    # Provider
    llm_provider: Literal["mock", "ollama", "openai"] = "mock"
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com"
    openai_model: str = "gpt-4o-mini"
    ollama_host: str = "http://ollama:11434"
    ollama_model: str = "llama3.1:8b"

    # Signing
    enable_signing: bool = False
    ed25519_private_key: Optional[str] = None
    ed25519_public_key: Optional[str] = None

    # Ledger
    ledger_path: Path = Path("./output/contracts.ndjson")
    ledger_fsync: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)
    cors_origins: list[str] = ["*"]

    # Request defaults
    default_tenant_id: str = "default"
    default_workflow: str = "translation"
    default_flow: str = "default"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def check(self) -> None:
        """Raise ConfigurationError if the selected provider cannot run."""
        if self.llm_provider == "openai" and not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is required when LLM_PROVIDER=openai. "
                "Set the environment variable or change the provider."
            )
        if self.enable_signing and not self.ed25519_private_key:
            logger.warning("signing_key_missing", detail="ENABLE_SIGNING is set but ED25519_PRIVATE_KEY is not; signatures will be empty")

    def redacted(self) -> dict:
        """Settings as a display dict with secrets masked."""
        values = self.model_dump(mode="json")
        for name in SECRET_FIELDS:
            values[name] = "***set***" if values.get(name) else "not set"
        return values
