"""Tests for the HTTP front end."""
import pytest
from fastapi.testclient import TestClient

from services.ledger.errors import ConfigurationError
from services.pipeline.config import Settings
from services.pipeline.main import create_app
from services.translator.providers import FixtureProvider

TRANSLATE_BODY = {
    "source_language": "en",
    "target_language": "pt",
    "source_text": "Hello world",
    "workflow": "test_workflow",
    "flow": "test_flow",
    "tenant_id": "test_tenant",
    "method": "machine",
}


@pytest.fixture
def settings(ledger_path):
    return Settings(ledger_path=ledger_path, ledger_fsync=False, llm_provider="mock")


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings, provider=FixtureProvider()))


def test_index_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "POST /translate" in r.json()["endpoints"]

    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.json()["contracts"] == 0


def test_translate_records_contract(client, ledger_path):
    r = client.post("/translate", json=TRANSLATE_BODY)

    assert r.status_code == 200
    contract = r.json()["contract"]
    assert contract["translated_text"] == "Olá mundo"
    assert contract["confidence"] == 0.95
    assert contract["id"].startswith("trans_")
    assert "translator" not in contract
    assert ledger_path.read_text(encoding="utf-8").count("\n") == 1

    r = client.get("/ledger/contracts")
    assert [e["contract"]["id"] for e in r.json()] == [contract["id"]]

    r = client.get(f"/ledger/contracts/{contract['id']}")
    assert r.status_code == 200
    assert r.json()[0]["contract"] == contract


def test_method_defaults_to_machine(client):
    body = {k: v for k, v in TRANSLATE_BODY.items() if k != "method"}
    r = client.post("/translate", json=body)
    assert r.status_code == 200
    assert r.json()["contract"]["method"] == "machine"


def test_human_without_translator_is_rejected(client, ledger_path):
    r = client.post("/translate", json={**TRANSLATE_BODY, "method": "human"})
    assert r.status_code == 400
    assert "translator" in r.json()["detail"]
    assert not ledger_path.exists()


def test_malformed_request_is_rejected(client, ledger_path):
    r = client.post("/translate", json={**TRANSLATE_BODY, "method": "robot"})
    assert r.status_code == 422
    r = client.post("/translate", json={k: v for k, v in TRANSLATE_BODY.items() if k != "tenant_id"})
    assert r.status_code == 422
    assert not ledger_path.exists()


def test_provider_failure_maps_to_bad_gateway(settings, ledger_path):
    client = TestClient(create_app(settings, provider=FixtureProvider(fail=True)))
    r = client.post("/translate", json=TRANSLATE_BODY)
    assert r.status_code == 502
    assert "Mock translation failed" in r.json()["detail"]
    assert not ledger_path.exists()


def test_unknown_contract_is_404(client):
    assert client.get("/ledger/contracts/trans_000000").status_code == 404


def test_corrupt_ledger_reports_errors(client, ledger_path):
    ledger_path.parent.mkdir(parents=True)
    ledger_path.write_text("not json\n", encoding="utf-8")

    assert client.get("/ledger/contracts").status_code == 500
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["status"] == "unhealthy"


def test_schema_endpoint(client):
    r = client.get("/schema")
    assert r.status_code == 200
    assert "contract" in r.json()["properties"]


def test_create_app_checks_settings(ledger_path):
    with pytest.raises(ConfigurationError):
        create_app(Settings(ledger_path=ledger_path, llm_provider="openai", openai_api_key=None))


def test_cors_preflight_for_translate(client):
    r = client.options("/translate", headers={
        "Origin": "http://example.com",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Content-Type",
    })
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
    assert "POST" in r.headers["access-control-allow-methods"]


def test_cors_origins_are_configurable(ledger_path):
    settings = Settings(ledger_path=ledger_path, ledger_fsync=False, cors_origins=["http://app.example"])
    client = TestClient(create_app(settings, provider=FixtureProvider()))

    r = client.get("/health", headers={"Origin": "http://app.example"})
    assert r.headers["access-control-allow-origin"] == "http://app.example"
    r = client.options("/translate", headers={"Origin": "http://evil.example", "Access-Control-Request-Method": "POST"})
    assert r.status_code == 400
