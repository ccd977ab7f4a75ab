from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from reconciler.main import app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _recent(hours: float = 1) -> str:
    return (datetime.now(timezone.utc) - timedelta(hours=hours)).isoformat()


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "receipt-reconciler"}
    assert resp.headers["x-request-id"]


def test_verify_payment_passes(client) -> None:
    body = {
        "payment_method": "cbe",
        "reference": "FT26015ABCDE",
        "expected_amount": 500,
        "result": {
            "source": "cbe",
            "success": True,
            "amount": 500,
            "receiverAccount": "1000356042704",
            "date": _recent(),
            "reference": "FT26015ABCDE",
        },
    }
    resp = client.post("/verify-payment", json=body)
    assert resp.status_code == 200
    out = resp.json()

    assert out["success"] is True
    assert out["validated"] is True
    assert out["receipt_reference"] == "FT26015ABCDE"
    assert out["validation"]["failed_reasons"] == []
    assert out["transaction"]["raw_data"] == body["result"]


def test_verify_payment_reports_reasons(client) -> None:
    body = {
        "payment_method": "dashen",
        "reference": "DB1234567",
        "expected_amount": "1000",
        "result": {
            "source": "dashen",
            "success": True,
            "transactionAmount": "900.00 ETB",
            "receiverName": "Someone Else",
            "transactionDate": _recent(),
        },
    }
    out = client.post("/verify-payment", json=body).json()

    assert out["success"] is True
    assert out["validated"] is False
    assert out["validation"]["checks"]["receiver_name_match"] == "failed"
    assert len(out["validation"]["failed_reasons"]) == 2


def test_verify_payment_collector_failure_skips_validation(client) -> None:
    body = {
        "payment_method": "telebirr",
        "reference": "CHQ0FJ403O",
        "expected_amount": 100,
        "result": {"source": "telebirr", "success": False, "error": "Record not found on Telebirr servers"},
    }
    out = client.post("/verify-payment", json=body).json()

    assert out["success"] is False
    assert out["validated"] is False
    assert out["validation"] is None
    assert out["error"] == "Record not found on Telebirr servers"
    assert out["receipt_reference"] == "CHQ0FJ403O"


def test_verify_payment_rejects_missing_result(client) -> None:
    body = {"payment_method": "cbe", "reference": "FT26015ABCDE", "expected_amount": 500}
    resp = client.post("/verify-payment", json=body)
    assert resp.status_code == 422
    assert "no result" in resp.json()["detail"]


def test_verify_payment_rejects_mismatched_source(client) -> None:
    body = {
        "payment_method": "cbe",
        "reference": "FT26015ABCDE",
        "expected_amount": 500,
        "result": {"source": "telebirr", "success": True},
    }
    resp = client.post("/verify-payment", json=body)
    assert resp.status_code == 422


def test_normalize_endpoint(client) -> None:
    body = {
        "reference": "CB99",
        "result": {"source": "cbebirr", "success": True, "amount": "90 Birr", "status": "Paid"},
    }
    resp = client.post("/normalize", json=body)
    assert resp.status_code == 200
    out = resp.json()
    assert out["amount"] == "90"
    assert out["status"] == "success"
    assert out["receipt_reference"] == "CB99"


def test_verify_payment_accepts_untagged_collector_result(client) -> None:
    result = {
        "success": True,
        "amount": 500,
        "receiver_account": "1000356042704",
        "date": _recent(),
    }
    body = {"payment_method": "cbe", "reference": "FT26015ABCDE", "expected_amount": 500, "result": result}
    resp = client.post("/verify-payment", json=body)

    assert resp.status_code == 200
    out = resp.json()
    assert out["validated"] is True
    assert out["transaction"]["raw_data"] == result


def test_normalize_endpoint_untagged_needs_payment_method(client) -> None:
    result = {"success": True, "amount": "90 Birr", "status": "Paid"}

    tagged = client.post("/normalize", json={"reference": "CB99", "payment_method": "cbebirr", "result": result})
    assert tagged.status_code == 200
    assert tagged.json()["payment_method"] == "cbebirr"

    untagged = client.post("/normalize", json={"reference": "CB99", "result": result})
    assert untagged.status_code == 422


def test_request_id_is_propagated(client) -> None:
    resp = client.get("/health", headers={"x-request-id": "req-0123456789"})
    assert resp.headers["x-request-id"] == "req-0123456789"

    unsafe = client.get("/health", headers={"x-request-id": "bad id"})
    assert unsafe.headers["x-request-id"] != "bad id"
