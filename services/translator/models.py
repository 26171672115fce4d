"""Data models for translation requests and provider I/O."""
from pydantic import BaseModel, Field
from typing import Optional

from services.ledger.models import TranslationMethod


class TranslationRequest(BaseModel):
    """Request model for a contract-backed translation."""
    source_language: str = Field(..., min_length=1, description="Natural or code language of the source")
    target_language: str = Field(..., min_length=1, description="Natural or code language of the output")
    source_text: str = Field(..., min_length=1, description="Text to translate")
    workflow: str = Field(..., min_length=1, description="Workflow identifier")
    flow: str = Field(..., min_length=1, description="Flow identifier")
    tenant_id: str = Field(..., min_length=1, description="Tenant identifier")
    method: TranslationMethod = "machine"
    translator: Optional[str] = Field(None, description="Required when method is human or hybrid")

    class Config:
        json_schema_extra = {
            "example": {
                "source_language": "en",
                "target_language": "pt",
                "source_text": "Hello world",
                "workflow": "docgen",
                "flow": "translate_fn",
                "tenant_id": "voulezvous",
                "method": "machine"
            }
        }


class ProviderRequest(BaseModel):
    """What a provider receives."""
    source_language: str
    target_language: str
    text: str


class ProviderResult(BaseModel):
    """What a provider returns. Not range-checked here; the ledger gate does that."""
    translated_text: str
    confidence: float
