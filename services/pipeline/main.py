"""Translation contract service - HTTP front end for the contract pipeline."""
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.ledger.errors import ContractValidationError, LedgerError, ProviderError
from services.ledger.models import ContractEnvelope
from services.ledger.storage import LedgerStorage
from services.ledger.validator import ContractValidator, envelope_json_schema
from services.translator.models import TranslationRequest
from services.translator.providers import TranslationProvider, create_provider

from .config import Settings
from .orchestrator import ContractPipeline
from .signer import signer_from_settings

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ]
)

logger = structlog.get_logger()

SERVICE_NAME = "contract-ledger"
SERVICE_VERSION = "0.1.0"


def create_app(settings: Optional[Settings] = None, provider: Optional[TranslationProvider] = None) -> FastAPI:
    """Build the HTTP app around one settings object, ledger and provider."""
    settings = settings or Settings()
    settings.check()

    storage = LedgerStorage(settings.ledger_path, ContractValidator(), fsync=settings.ledger_fsync)
    pipeline = ContractPipeline(storage, signer=signer_from_settings(settings))
    provider = provider or create_provider(settings)

    app = FastAPI(
        title="Translation Contract Ledger",
        description="Schema-validated, append-only ledger of translation contracts",
        version=SERVICE_VERSION,
    )
    # Browser clients post translations cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.pipeline = pipeline
    app.state.provider = provider

    logger.info("service_configured", provider=provider.name, ledger=str(settings.ledger_path))

    @app.get("/")
    def index():
        """Service index."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "POST /translate": "Translate text and record the contract",
                "GET /ledger/contracts": "List recorded contracts",
                "GET /ledger/contracts/{contract_id}": "Get contracts by ID",
                "GET /schema": "Ledger envelope JSON schema",
                "GET /health": "Health check",
            },
        }

    @app.post("/translate", response_model=ContractEnvelope, response_model_exclude_none=True)
    async def translate(request: TranslationRequest):
        """Translate text and append the resulting contract to the ledger."""
        try:
            return await pipeline.process(provider, request)
        except ContractValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ProviderError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            logger.error("translate_failed", error=str(e))
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/ledger/contracts", response_model=list[ContractEnvelope], response_model_exclude_none=True)
    def list_contracts():
        """All envelopes in append order."""
        try:
            return storage.read_all()
        except LedgerError as e:
            logger.error("list_contracts_failed", error=str(e))
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/ledger/contracts/{contract_id}", response_model=list[ContractEnvelope],
             response_model_exclude_none=True)
    def get_contract(contract_id: str):
        """Every envelope recorded under contract_id."""
        try:
            envelopes = storage.find(contract_id)
        except LedgerError as e:
            logger.error("get_contract_failed", contract_id=contract_id, error=str(e))
            raise HTTPException(status_code=500, detail=str(e))
        if not envelopes:
            raise HTTPException(status_code=404, detail=f"Contract not found: {contract_id}")
        return envelopes

    @app.get("/schema")
    def schema():
        return envelope_json_schema()

    @app.get("/health")
    def health():
        """Health check endpoint."""
        try:
            return {
                "status": "healthy",
                "service": SERVICE_NAME,
                "provider": provider.name,
                "ledger_path": str(settings.ledger_path),
                "contracts": storage.count()
            }
        except Exception as e:
            logger.error("health_check_failed", error=str(e))
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "error": str(e)}
            )

    return app


if __name__ == "__main__":
    import uvicorn
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
