"""Contract assembly.

The builder never validates. It always returns a contract, even one the
ledger gate will reject, so callers can inspect what went wrong.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from services.ledger.hashing import generate_contract_id, utc_timestamp
from services.ledger.models import Provenance, TranslationContract
from services.translator.models import TranslationRequest

Clock = Callable[[], datetime]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clock_nonce(now: datetime) -> int:
    """Microseconds since the epoch, used as the contract ID nonce."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - EPOCH) // timedelta(microseconds=1)


def contract_id_content(request: TranslationRequest) -> str:
    """Canonical composition hashed into the contract ID."""
    return f"{request.source_text}_{request.target_language}_{request.workflow}_{request.flow}"


def build_contract(
    request: TranslationRequest,
    translated_text,
    confidence,
    signature: str = "",
    clock: Optional[Clock] = None,
) -> TranslationContract:
    """Assemble a contract from a request and a provider's output."""
    now = (clock or utc_now)()
    nonce = clock_nonce(now)

    provenance = Provenance.model_construct(
        timestamp=utc_timestamp(now),
        tenant_id=request.tenant_id,
        signature=signature,
    )
    return TranslationContract.model_construct(
        id=generate_contract_id(contract_id_content(request), nonce=nonce),
        workflow=request.workflow,
        flow=request.flow,
        source_language=request.source_language,
        target_language=request.target_language,
        source_text=request.source_text,
        translated_text=translated_text,
        translator=request.translator or None,
        method=request.method,
        confidence=confidence,
        provenance=provenance,
    )
