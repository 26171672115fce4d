"""Data models for translation contracts and ledger envelopes.

These models double as the embedded ledger schema: the validator checks
serialized envelopes against them in strict mode.
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional

from .hashing import TIMESTAMP_PATTERN

TranslationMethod = Literal["human", "machine", "hybrid"]

METHODS_REQUIRING_TRANSLATOR = ("human", "hybrid")


class Provenance(BaseModel):
    """When, for whom and (optionally) signed by whom."""
    timestamp: str = Field(..., pattern=TIMESTAMP_PATTERN, description="UTC build instant")
    tenant_id: str = Field(..., min_length=1, description="Tenant identifier")
    signature: str = Field("", pattern=r"^[0-9a-f]*$", description="Hex signature, empty when unsigned")

    class Config:
        frozen = True
        extra = "forbid"


class TranslationContract(BaseModel):
    """Immutable record of one translation operation."""
    id: str = Field(..., pattern=r"^trans_[0-9a-f]{6}$", description="Contract identifier")
    workflow: str = Field(..., min_length=1)
    flow: str = Field(..., min_length=1)
    source_language: str = Field(..., min_length=1)
    target_language: str = Field(..., min_length=1)
    source_text: str = Field(..., min_length=1)
    translated_text: str = Field(..., min_length=1)
    translator: Optional[str] = None
    method: TranslationMethod
    confidence: float
    provenance: Provenance

    class Config:
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "id": "trans_f2a7c8",
                "workflow": "docgen",
                "flow": "translate_fn",
                "source_language": "python",
                "target_language": "pt",
                "source_text": "def greet(): print('Hello')",
                "translated_text": "Uma função 'greet' que imprime 'Hello'.",
                "method": "machine",
                "confidence": 0.92,
                "provenance": {
                    "timestamp": "2025-11-13T18:44:00.123Z",
                    "tenant_id": "voulezvous",
                    "signature": ""
                }
            }
        }


class ContractEnvelope(BaseModel):
    """Unit of ledger storage: one envelope per NDJSON line."""
    contract: TranslationContract

    class Config:
        frozen = True
        extra = "forbid"

    def to_line(self) -> str:
        """Serialize as one compact JSON line terminated by a newline."""
        return self.model_dump_json(exclude_none=True) + "\n"
