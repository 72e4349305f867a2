"""
Tests for API endpoints.
"""
import pytest
from fastapi.testclient import TestClient
from api.main import app
from qualicert_config import settings

from nfe_samples import ACCESS_KEY, DEST, RECIPIENT_CNPJ, sample_nfe

client = TestClient(app)

pytestmark = pytest.mark.api


def xml_file(xml, content_type="application/xml"):
    payload = xml.encode("utf-8") if isinstance(xml, str) else xml
    return {"file": ("nota.xml", payload, content_type)}


def test_health_check():
    """Test health endpoint returns 200 and correct structure."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == settings.APP_VERSION
    assert data["checks"]["api"] is True


# UPLOAD

def test_rejects_wrong_content_type():
    response = client.post("/v1/nfe/validate", files=xml_file(sample_nfe(), "text/plain"))
    assert response.status_code == 415


def test_rejects_oversized_file(monkeypatch):
    monkeypatch.setattr(settings, "API_MAX_UPLOAD_SIZE_MB", 0)
    response = client.post("/v1/nfe/validate", files=xml_file(sample_nfe()))
    assert response.status_code == 413


def test_rejects_non_utf8_file():
    response = client.post("/v1/nfe/parse", files=xml_file(b"\xff\xfe<NFe/>"))
    assert response.status_code == 422


def test_accepts_text_xml_with_bom():
    payload = b"\xef\xbb\xbf" + sample_nfe().encode("utf-8")
    response = client.post("/v1/nfe/parse", files=xml_file(payload, "text/xml"))
    assert response.status_code == 200


# NF-e

def test_validate_endpoint():
    response = client.post("/v1/nfe/validate", files=xml_file(sample_nfe()))

    assert response.status_code == 200
    assert response.json() == {"is_valid": True, "errors": []}


def test_validate_endpoint_never_fails_on_content():
    response = client.post("/v1/nfe/validate", files=xml_file("not xml at all"))

    assert response.status_code == 200
    assert response.json()["is_valid"] is False


def test_parse_endpoint():
    response = client.post("/v1/nfe/parse", files=xml_file(sample_nfe()))

    assert response.status_code == 200
    data = response.json()
    assert data["document"]["invoice"]["access_key"] == ACCESS_KEY
    assert len(data["document"]["items"]) == 2
    assert data["warnings"] == []


def test_summary_endpoint():
    response = client.post("/v1/nfe/summary", files=xml_file(sample_nfe()))

    assert response.status_code == 200
    data = response.json()
    assert data["issue_date_display"] == "15/01/2024"
    assert data["recipient_tax_id"] == RECIPIENT_CNPJ
    assert data["item_count"] == 2
    assert data["total_value"] == "13401.00"


def test_parse_error_is_400():
    response = client.post("/v1/nfe/parse", files=xml_file("<nfeProc><NFe>"))

    assert response.status_code == 400
    data = response.json()
    assert data["kind"] == "parse"
    assert data["message"] == "File is not well-formed XML"


def test_not_an_invoice_is_422():
    response = client.post("/v1/nfe/parse", files=xml_file("<pedido><item/></pedido>"))

    assert response.status_code == 422
    assert response.json()["kind"] == "malformed"


def test_missing_field_names_the_field():
    dest = DEST.format(tax_id=f"<CNPJ>{RECIPIENT_CNPJ}</CNPJ>", address="")
    response = client.post("/v1/nfe/summary", files=xml_file(sample_nfe(dest=dest)))

    assert response.status_code == 422
    data = response.json()
    assert data["kind"] == "missing_field"
    assert data["field"] == "dest.enderDest"
    assert data["message"] == "Invoice XML is missing required data: dest.enderDest"
    assert "recipient" in data["detail"]


# IMPORT

def test_import_valid_request():
    response = client.post(
        "/v1/nfe/import",
        files=xml_file(sample_nfe()),
        data={"context": '{"tenant_id":"acme-corp"}'},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["tenant_id"] == "acme-corp"
    assert data["execution_id"].startswith("acme-corp_")
    assert data["trace_id"]
    assert data["payload"]["invoice"]["number"] == "1234"


def test_import_keeps_caller_ids():
    response = client.post(
        "/v1/nfe/import",
        files=xml_file(sample_nfe()),
        data={"context": '{"tenant_id":"t1","trace_id":"tr-1","execution_id":"ex-1"}'},
    )

    data = response.json()
    assert data["trace_id"] == "tr-1"
    assert data["execution_id"] == "ex-1"


def test_import_broken_xml_reports_error_status():
    response = client.post(
        "/v1/nfe/import",
        files=xml_file("<nfeProc>"),
        data={"context": '{"tenant_id":"t1"}'},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "error"
    assert data["error_kind"] == "parse"
    assert data["payload"] is None


@pytest.mark.parametrize(
    "context",
    [
        "invalid json",
        '{"source":"upload"}',
        '{"tenant_id":"acme corp!"}',
    ],
)
def test_import_invalid_context(context):
    response = client.post(
        "/v1/nfe/import",
        files=xml_file(sample_nfe()),
        data={"context": context},
    )
    assert response.status_code == 422


# CERTIFICADOS E LOTES

def test_certificate_validation():
    body = {
        "characteristics": [
            {"name": "purity", "unit": "%", "min_value": 98, "max_value": 100},
            {"name": "appearance", "check": "EXACT", "expected_value": "white powder"},
        ],
        "results": [
            {"name": "purity", "reported_value": "99,5"},
            {"name": "appearance", "reported_value": "White Powder"},
        ],
    }
    response = client.post("/v1/certificates/validate", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["overall"] == "APPROVED"
    assert [d["verdict"] for d in data["details"]] == ["PASS", "PASS"]


def test_certificate_with_inverted_limits_is_rejected_by_schema():
    body = {
        "characteristics": [{"name": "ph", "min_value": 8, "max_value": 6}],
        "results": [],
    }
    assert client.post("/v1/certificates/validate", json=body).status_code == 422


def test_lots_expiration():
    body = {
        "as_of": "2026-01-01",
        "lots": [
            {"lot": "L1", "expiration_date": "2025-12-31"},
            {"lot": "L2", "expiration_date": "2026-01-30"},
            {"lot": "L3", "expiration_date": "2026-01-31"},
            {"lot": "L4", "expiration_date": "2026-04-01"},
        ],
    }
    response = client.post("/v1/lots/expiration", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["summary"] == {"expired": 1, "critical": 1, "warning": 1, "safe": 1, "total": 4}
    assert [lot["risk"]["category"] for lot in data["lots"]] == ["EXPIRED", "CRITICAL", "WARNING", "SAFE"]
    assert data["lots"][2]["risk"]["days_until"] == 30
