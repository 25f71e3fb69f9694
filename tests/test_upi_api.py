from __future__ import annotations

from fastapi.testclient import TestClient

from upi_reader.main import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def test_healthz_echoes_request_id():
    resp = _client().get("/healthz", headers={"x-request-id": "req-123"})

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["x-request-id"] == "req-123"


def test_process_text_returns_single_transaction():
    resp = _client().post(
        "/api/upi/process-text",
        json={"text": "recd Rs.1,200.00 from Rahul rahul@okaxis txn REF40983240 via Google Pay"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "UPI information extracted successfully"
    data = body["data"]
    assert data["transaction_type"] == "received"
    assert data["amount"] == 1200
    assert data["from"] == "Rahul"
    assert data["upi_id"] == "rahul@okaxis"
    assert data["ref_no"] == "REF40983240"
    assert data["source"] == "Google Pay"


def test_process_text_requires_text():
    client = _client()

    assert client.post("/api/upi/process-text", json={"text": "   "}).status_code == 400
    resp = client.post("/api/upi/process-text", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Text is required"


def test_process_file_returns_transactions_in_order():
    sms = (
        "Debited INR 500.00 to Amit via PhonePe\n"
        "Credited Rs.2,250.50 from Priya priya@ybl Ref UPI123456789\n"
    )
    resp = _client().post(
        "/api/upi/process-file",
        files={"file": ("sms.txt", sms.encode("utf-8"), "text/plain")},
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert isinstance(data, list)
    assert [d["transaction_type"] for d in data] == ["paid", "received"]
    assert [d["amount"] for d in data] == [500, 2250.5]
    assert data[1]["upi_id"] == "priya@ybl"
    assert data[1]["ref_no"] == "UPI123456789"


def test_process_file_rejects_binary_and_empty_uploads():
    client = _client()

    resp = client.post(
        "/api/upi/process-file",
        files={"file": ("sms.bin", b"\xff\xfe\x00\x81", "application/octet-stream")},
    )
    assert resp.status_code == 400

    resp = client.post(
        "/api/upi/process-file", files={"file": ("empty.txt", b"  \n", "text/plain")}
    )
    assert resp.status_code == 400


def test_save_transaction_detects_duplicate():
    client = _client()
    transaction = {
        "transaction_type": "received",
        "amount": 1200,
        "from": "Rahul",
        "upi_id": "rahul@okaxis",
        "ref_no": "REF40983240",
        "source": "Google Pay",
        "timestamp": "2025-01-05 08:00",
        "raw_text": "received ₹1,200.00 from Rahul",
    }

    first = client.post("/api/upi/save-transaction", json={"transaction": transaction})
    transaction["timestamp"] = "2025-01-05 20:00"
    second = client.post(
        "/api/upi/save-transaction",
        json={"transaction": transaction, "raw_text": "same screenshot again"},
    )

    assert first.status_code == 200
    assert first.json()["duplicate"] is False
    assert first.json()["message"] == "UPI transaction saved successfully"
    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["payment_id"] == first.json()["payment_id"]
    assert second.json()["message"] == "Duplicate transaction detected"


def test_save_transaction_requires_transaction():
    resp = _client().post("/api/upi/save-transaction", json={"raw_text": "x"})
    assert resp.status_code == 422
