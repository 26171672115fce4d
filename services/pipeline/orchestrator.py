"""Pipeline orchestration: provider call, contract build, ledger append."""
from typing import Optional

import structlog

from services.ledger.errors import RequestValidationError
from services.ledger.hashing import generate_trace_id
from services.ledger.models import METHODS_REQUIRING_TRANSLATOR, ContractEnvelope
from services.ledger.storage import LedgerStorage
from services.translator.models import ProviderRequest, TranslationRequest
from services.translator.providers import TranslationProvider

from .builder import Clock, build_contract
from .signer import ContractSigner

logger = structlog.get_logger()


def check_request(request: TranslationRequest) -> None:
    """Request-level rules, enforced before any provider call or I/O."""
    if request.method in METHODS_REQUIRING_TRANSLATOR and not request.translator:
        raise RequestValidationError(
            "translator",
            f"translator field is required when method is '{request.method}'",
        )


class ContractPipeline:
    """
    Turns one translation request into one durably recorded contract.

    Exactly one ledger append happens per successful call and none on any
    failure. Provider errors propagate unchanged; nothing is retried.
    """

    def __init__(
        self,
        ledger: LedgerStorage,
        signer: Optional[ContractSigner] = None,
        clock: Optional[Clock] = None,
    ):
        self.ledger = ledger
        self.signer = signer
        self.clock = clock

    async def process(self, provider: TranslationProvider, request: TranslationRequest) -> ContractEnvelope:
        log = logger.bind(
            trace_id=generate_trace_id(),
            workflow=request.workflow,
            flow=request.flow,
            tenant_id=request.tenant_id,
        )

        try:
            check_request(request)
        except RequestValidationError as e:
            log.warning("request_rejected", field=e.field, error=str(e))
            raise

        log.info(
            "translation_requested",
            provider=provider.name,
            source_language=request.source_language,
            target_language=request.target_language,
            text_length=len(request.source_text)
        )
        try:
            result = await provider.translate(ProviderRequest(
                source_language=request.source_language,
                target_language=request.target_language,
                text=request.source_text,
            ))
        except Exception as e:
            log.error("provider_failed", provider=provider.name, error=str(e))
            raise

        contract = build_contract(request, result.translated_text, result.confidence, clock=self.clock)
        if self.signer is not None:
            contract = self.signer.apply(contract)

        envelope = self.ledger.append(ContractEnvelope.model_construct(contract=contract))

        log.info("translation_recorded", contract_id=envelope.contract.id, confidence=envelope.contract.confidence)
        return envelope
