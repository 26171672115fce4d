"""Validation gate for contracts and envelopes.

Two layers run in order. The structural layer serializes the input to JSON
and checks it against the embedded envelope schema in strict mode, reporting
every violation at once. The business layer runs only on structurally valid
input and stops at the first broken rule.
"""
import json
from functools import lru_cache
from typing import Any, Union

import structlog
from pydantic import BaseModel, ValidationError

from .errors import ConfidenceRangeError, RequiredFieldError, StructuralValidationError
from .models import METHODS_REQUIRING_TRANSLATOR, ContractEnvelope, TranslationContract

logger = structlog.get_logger()

Validatable = Union[ContractEnvelope, TranslationContract, dict]


@lru_cache(maxsize=None)
def envelope_json_schema() -> dict:
    """JSON Schema of a ledger envelope, generated from the embedded model."""
    return ContractEnvelope.model_json_schema()


def _to_plain(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        # Contracts assembled with model_construct may hold values of the wrong
        # type; serialize them as-is and let the schema reject them.
        return obj.model_dump(mode="json", exclude_none=True, warnings=False)
    return obj


def _format_error(error: dict) -> str:
    location = ".".join(str(part) for part in error["loc"]) or "<root>"
    return f"{location}: {error['msg']}"


class ContractValidator:
    """Checks envelopes (or bare contracts) before they reach the ledger."""

    def __init__(self, schema: type[ContractEnvelope] = ContractEnvelope):
        self.schema = schema

    def validate(self, obj: Validatable) -> ContractEnvelope:
        """Validate obj and return it as a strictly parsed envelope."""
        envelope = self.check_structure(obj)
        self.check_business_rules(envelope.contract)
        return envelope

    def check_structure(self, obj: Validatable) -> ContractEnvelope:
        data = _to_plain(obj)
        if isinstance(obj, TranslationContract) or (isinstance(data, dict) and "contract" not in data):
            data = {"contract": data}

        try:
            payload = json.dumps(data, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise StructuralValidationError(f"Invalid translation contract envelope: {e}") from e

        try:
            return self.schema.model_validate_json(payload, strict=True)
        except ValidationError as e:
            errors = [_format_error(err) for err in e.errors()]
            logger.warning("envelope_rejected", layer="structural", error_count=len(errors))
            raise StructuralValidationError(
                "Invalid translation contract envelope: " + "; ".join(errors),
                errors=errors,
            ) from e

    def check_business_rules(self, contract: TranslationContract) -> None:
        if not 0.0 <= contract.confidence <= 1.0:
            logger.warning("envelope_rejected", layer="business", rule="confidence_range",
                           contract_id=contract.id)
            raise ConfidenceRangeError(contract.confidence)

        if contract.method in METHODS_REQUIRING_TRANSLATOR and not contract.translator:
            logger.warning("envelope_rejected", layer="business", rule="translator_required",
                           contract_id=contract.id)
            raise RequiredFieldError(
                "translator",
                f"translator field is required when method is '{contract.method}'",
            )
