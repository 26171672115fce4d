"""Tests for the full provider -> contract -> ledger pipeline."""
from datetime import datetime, timezone

import pytest

from services.ledger.errors import (
    ConfidenceRangeError,
    ProviderError,
    RequestValidationError,
    RequiredFieldError,
)
from services.ledger.hashing import is_valid_timestamp
from services.pipeline.orchestrator import ContractPipeline, check_request
from services.pipeline.signer import ContractSigner, generate_key_pair, verify_contract
from services.translator.providers import FixtureProvider


class ExplodingProvider(FixtureProvider):
    """Provider failing with a non-library exception type."""

    async def translate(self, request):
        self.calls.append(request)
        raise RuntimeError("backend exploded")


@pytest.mark.asyncio
async def test_machine_translation_is_recorded(pipeline, provider, storage, ledger_path, make_request):
    envelope = await pipeline.process(provider, make_request())
    contract = envelope.contract

    assert contract.translated_text == "Olá mundo"
    assert contract.confidence == 0.95
    assert contract.method == "machine"
    assert contract.id.startswith("trans_")
    assert contract.provenance.tenant_id == "test_tenant"
    assert is_valid_timestamp(contract.provenance.timestamp)
    assert 0.0 <= contract.confidence <= 1.0

    assert ledger_path.read_text(encoding="utf-8").count("\n") == 1
    assert storage.read_all() == [envelope]


@pytest.mark.asyncio
async def test_provider_receives_request_fields(pipeline, provider, make_request):
    await pipeline.process(provider, make_request(source_language="python", source_text="def f(): pass"))

    [call] = provider.calls
    assert call.source_language == "python"
    assert call.target_language == "pt"
    assert call.text == "def f(): pass"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["human", "hybrid"])
@pytest.mark.parametrize("translator", [None, ""])
async def test_missing_translator_fails_before_provider(pipeline, provider, ledger_path, make_request,
                                                       method, translator):
    with pytest.raises(RequestValidationError) as exc_info:
        await pipeline.process(provider, make_request(method=method, translator=translator))

    assert isinstance(exc_info.value, RequiredFieldError)
    assert exc_info.value.field == "translator"
    assert "translator field is required" in str(exc_info.value)
    assert provider.calls == []
    assert not ledger_path.exists()


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["human", "hybrid"])
async def test_translator_is_recorded(pipeline, provider, storage, make_request, method):
    envelope = await pipeline.process(provider, make_request(method=method, translator="john.doe@example.com"))

    assert envelope.contract.translator == "john.doe@example.com"
    assert envelope.contract.method == method
    assert storage.read_all()[0].contract.translator == "john.doe@example.com"


@pytest.mark.asyncio
async def test_provider_failure_leaves_ledger_untouched(pipeline, storage, ledger_path, make_request):
    await pipeline.process(FixtureProvider(), make_request())
    before = ledger_path.read_bytes()

    with pytest.raises(ProviderError, match="Mock translation failed"):
        await pipeline.process(FixtureProvider(fail=True), make_request())

    assert ledger_path.read_bytes() == before


@pytest.mark.asyncio
async def test_foreign_provider_errors_propagate_unchanged(pipeline, ledger_path, make_request):
    provider = ExplodingProvider()
    with pytest.raises(RuntimeError, match="backend exploded"):
        await pipeline.process(provider, make_request())

    assert len(provider.calls) == 1
    assert not ledger_path.exists()


@pytest.mark.asyncio
async def test_out_of_range_confidence_is_not_recorded(pipeline, ledger_path, make_request):
    with pytest.raises(ConfidenceRangeError):
        await pipeline.process(FixtureProvider(confidence=1.2), make_request())
    assert not ledger_path.exists()


@pytest.mark.asyncio
async def test_identical_requests_get_distinct_ids(storage, provider, make_request, stepping_clock):
    pipeline = ContractPipeline(storage, clock=stepping_clock)

    first = await pipeline.process(provider, make_request())
    second = await pipeline.process(provider, make_request())

    envelopes = storage.read_all()
    assert len(envelopes) == 2
    assert first.contract.id != second.contract.id
    assert first.contract.provenance.timestamp != second.contract.provenance.timestamp
    assert [e.contract.id for e in envelopes] == [first.contract.id, second.contract.id]


@pytest.mark.asyncio
async def test_ids_are_deterministic_for_a_fixed_clock(storage, provider, make_request):
    instant = datetime(2025, 11, 13, 18, 44, 0, 123000, tzinfo=timezone.utc)
    pipeline = ContractPipeline(storage, clock=lambda: instant)

    first = await pipeline.process(provider, make_request())
    second = await pipeline.process(provider, make_request())

    assert first.contract.id == second.contract.id
    assert storage.find(first.contract.id) == [first, second]


@pytest.mark.asyncio
async def test_signed_contracts_verify_after_read_back(storage, provider, make_request):
    private_hex, public_hex = generate_key_pair()
    pipeline = ContractPipeline(storage, signer=ContractSigner.from_hex(private_hex))

    envelope = await pipeline.process(provider, make_request(target_language="ja"))

    assert envelope.contract.provenance.signature != ""
    [stored] = storage.read_all()
    assert verify_contract(stored.contract, public_hex)


@pytest.mark.asyncio
async def test_delayed_provider_still_records(pipeline, storage, make_request):
    await pipeline.process(FixtureProvider(delay=0.01), make_request())
    assert storage.count() == 1


def test_check_request_accepts_machine_without_translator(make_request):
    check_request(make_request())
    check_request(make_request(method="hybrid", translator="ana"))
