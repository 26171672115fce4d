"""Shared fixtures for the contract ledger tests."""
from datetime import datetime, timedelta, timezone

import pytest
import structlog

from services.ledger.storage import LedgerStorage
from services.pipeline.orchestrator import ContractPipeline
from services.translator.models import TranslationRequest
from services.translator.providers import FixtureProvider


@pytest.fixture(autouse=True)
def reset_structlog():
    """CLI tests point structlog at a captured stream; undo that after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "output" / "contracts.ndjson"


@pytest.fixture
def storage(ledger_path):
    return LedgerStorage(ledger_path, fsync=False)


@pytest.fixture
def provider():
    return FixtureProvider()


@pytest.fixture
def pipeline(storage):
    return ContractPipeline(storage)


@pytest.fixture
def make_request():
    """Factory for translation requests with sensible defaults."""
    def _make(**overrides):
        fields = {
            "source_language": "en",
            "target_language": "pt",
            "source_text": "Hello world",
            "workflow": "test_workflow",
            "flow": "test_flow",
            "tenant_id": "test_tenant",
            "method": "machine",
        }
        fields.update(overrides)
        return TranslationRequest(**fields)
    return _make


@pytest.fixture
def stepping_clock():
    """Clock that advances one millisecond per reading."""
    start = datetime(2025, 11, 13, 18, 44, 0, 123000, tzinfo=timezone.utc)
    readings = []

    def _clock():
        now = start + timedelta(milliseconds=len(readings))
        readings.append(now)
        return now
    return _clock
