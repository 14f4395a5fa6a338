from datetime import date, timedelta

from schoolfees.core.security import create_access_token

API = "/api/v1"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert "X-Request-ID" in response.headers


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_missing_token_is_rejected(client, cohort):
    response = client.get(f"{API}/invoices/pending")

    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "AUTHENTICATION_FAILED"
    assert "timestamp" in body["error"]
    assert body["request_id"]


def test_token_signed_with_other_secret_is_rejected(client, cohort):
    token = create_access_token("user-1", "admin")

    response = client.get(f"{API}/invoices/pending", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_staff_cannot_bulk_generate(client, cohort, auth_headers):
    response = client.post(
        f"{API}/invoices/bulk-generate",
        json={"course_id": cohort.course.id},
        headers=auth_headers("staff"),
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTHORIZATION_FAILED"


def test_generate_collect_and_read_ledger(client, cohort, auth_headers):
    finance = auth_headers("finance", subject="fin-1")

    created = client.post(
        f"{API}/invoices/generate",
        json={"student_id": cohort.student.id},
        headers=finance,
    )
    assert created.status_code == 201
    invoice = created.json()
    assert invoice["total_amount"] == "1700.00"
    assert invoice["status"] == "Pending"
    assert invoice["created_by"] == "fin-1"

    collected = client.post(
        f"{API}/payments/collect",
        json={"student_id": cohort.student.id, "amount": "2000", "payment_mode": "UPI"},
        headers=auth_headers("staff"),
    )
    assert collected.status_code == 200
    result = collected.json()
    assert result["amount_applied"] == "1700.00"
    assert result["remaining_unapplied"] == "300.00"
    assert result["allocations"][0]["new_status"] == "Paid"

    receipt = client.get(f"{API}/payments/receipts/{result['receipt_number']}", headers=finance)
    assert receipt.status_code == 200
    assert receipt.json()["total_amount"] == "1700.00"

    ledger = client.get(f"{API}/ledger/students/{cohort.student.id}", headers=finance)
    assert ledger.status_code == 200
    assert ledger.json()["balance"] == "0.00"

    items = client.get(f"{API}/invoices/{invoice['id']}/items", headers=finance)
    assert [item["amount"] for item in items.json()] == ["1000.00", "500.00", "200.00"]


def test_duplicate_generate_returns_conflict(client, cohort, auth_headers):
    headers = auth_headers("admin")
    client.post(f"{API}/invoices/generate", json={"student_id": cohort.student.id}, headers=headers)

    response = client.post(f"{API}/invoices/generate", json={"student_id": cohort.student.id}, headers=headers)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_bulk_generate(client, cohort, add_student, auth_headers):
    add_student(roll_number="10A-02")

    response = client.post(
        f"{API}/invoices/bulk-generate",
        json={
            "course_id": cohort.course.id,
            "batch_id": cohort.batch.id,
            "due_date": (date.today() + timedelta(days=7)).isoformat(),
        },
        headers=auth_headers("super_admin"),
    )

    assert response.status_code == 200
    assert response.json()["created"] == 2

    pending = client.get(f"{API}/invoices/pending", headers=auth_headers("staff"))
    assert pending.json()["total"] == 2


def test_collect_without_open_invoices(client, cohort, auth_headers):
    response = client.post(
        f"{API}/payments/collect",
        json={"student_id": cohort.student.id, "amount": "100"},
        headers=auth_headers("staff"),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INSUFFICIENT_CONTEXT"


def test_collect_non_positive_amount(client, cohort, auth_headers):
    response = client.post(
        f"{API}/payments/collect",
        json={"student_id": cohort.student.id, "amount": "-5"},
        headers=auth_headers("staff"),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_INPUT"


def test_malformed_body_returns_validation_error(client, cohort, auth_headers):
    response = client.post(
        f"{API}/payments/collect",
        json={"amount": "10"},
        headers=auth_headers("staff"),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["field_errors"][0]["field"] == "student_id"


def test_unknown_invoice_returns_not_found(client, cohort, auth_headers):
    response = client.get(f"{API}/invoices/missing", headers=auth_headers("staff"))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_student_reads_only_own_ledger(client, cohort, add_student, auth_headers):
    other = add_student()
    own = auth_headers("student", subject="stu-1", student_id=cohort.student.id)

    assert client.get(f"{API}/ledger/students/{cohort.student.id}", headers=own).status_code == 200
    assert client.get(f"{API}/ledger/students/{cohort.student.id}/statement", headers=own).status_code == 200
    assert client.get(f"{API}/ledger/students/{other.id}", headers=own).status_code == 403
    assert client.get(f"{API}/ledger/dashboard-stats", headers=own).status_code == 403


def test_waiver_request_and_decision(client, cohort, auth_headers):
    admin = auth_headers("admin", subject="admin-1")
    client.post(f"{API}/invoices/generate", json={"student_id": cohort.student.id}, headers=admin)

    requested = client.post(
        f"{API}/waivers",
        json={"student_id": cohort.student.id, "fee_type": "Tuition Fee", "amount": "200", "reason": "Merit"},
        headers=auth_headers("student", subject="stu-1", student_id=cohort.student.id),
    )
    assert requested.status_code == 201
    waiver = requested.json()
    assert waiver["status"] == "Pending"

    queue = client.get(f"{API}/waivers", params={"status": "Pending"}, headers=auth_headers("staff"))
    assert [item["id"] for item in queue.json()] == [waiver["id"]]

    forbidden = client.put(
        f"{API}/waivers/{waiver['id']}/decision",
        json={"decision": "Approved"},
        headers=auth_headers("finance"),
    )
    assert forbidden.status_code == 403

    decided = client.put(f"{API}/waivers/{waiver['id']}/decision", json={"decision": "Approved"}, headers=admin)
    assert decided.status_code == 200
    assert decided.json()["status"] == "Approved"
    assert decided.json()["processed_by"] == "admin-1"

    again = client.put(f"{API}/waivers/{waiver['id']}/decision", json={"decision": "Rejected"}, headers=admin)
    assert again.status_code == 409

    ledger = client.get(f"{API}/ledger/students/{cohort.student.id}", headers=admin)
    assert ledger.json()["total_fees"] == "1500.00"
    assert ledger.json()["total_discount"] == "200.00"


def test_student_cannot_request_waiver_for_someone_else(client, cohort, add_student, auth_headers):
    other = add_student()

    response = client.post(
        f"{API}/waivers",
        json={"student_id": other.id, "fee_type": "Tuition Fee", "amount": "50"},
        headers=auth_headers("student", subject="stu-1", student_id=cohort.student.id),
    )

    assert response.status_code == 403


def test_fee_structure_endpoints(client, cohort, auth_headers):
    staff = auth_headers("staff")

    resolved = client.get(
        f"{API}/fee-structures/resolve",
        params={
            "course_id": cohort.course.id,
            "batch_id": cohort.batch.id,
            "session_id": cohort.session.id,
        },
        headers=staff,
    )
    assert resolved.status_code == 200
    assert resolved.json()["admission_fee"] == "500.00"

    listed = client.get(f"{API}/fee-structures", headers=staff)
    assert listed.json()["total"] == 1

    payload = {
        "structure_name": "Duplicate",
        "course_id": cohort.course.id,
        "batch_id": cohort.batch.id,
        "session_id": cohort.session.id,
        "tuition_fee": "10",
    }
    assert client.post(f"{API}/fee-structures", json=payload, headers=staff).status_code == 403
    assert client.post(f"{API}/fee-structures", json=payload, headers=auth_headers("finance")).status_code == 409

    deactivated = client.post(
        f"{API}/fee-structures/{cohort.structure.id}/deactivate",
        headers=auth_headers("finance"),
    )
    assert deactivated.json()["is_active"] is False
    assert client.post(f"{API}/fee-structures", json=payload, headers=auth_headers("finance")).status_code == 201


def test_dashboard_and_forecast(client, cohort, auth_headers):
    finance = auth_headers("finance")
    client.post(f"{API}/invoices/generate", json={"student_id": cohort.student.id}, headers=finance)

    stats = client.get(f"{API}/ledger/dashboard-stats", headers=finance)
    forecast = client.get(f"{API}/ledger/revenue-forecast", params={"months": 2}, headers=finance)
    defaulters = client.get(f"{API}/ledger/defaulters", headers=finance)

    assert stats.json()["total_outstanding"] == "1700.00"
    assert len(forecast.json()["buckets"]) == 2
    assert [d["student_id"] for d in defaulters.json()] == [cohort.student.id]
    assert client.get(f"{API}/ledger/revenue-forecast", params={"months": 30}, headers=finance).status_code == 422


def test_get_waiver_respects_student_scope(client, cohort, add_student, auth_headers):
    other = add_student()
    created = client.post(
        f"{API}/waivers",
        json={"student_id": cohort.student.id, "fee_type": "Tuition Fee", "amount": "75"},
        headers=auth_headers("staff"),
    ).json()

    own = auth_headers("student", subject="stu-1", student_id=cohort.student.id)
    stranger = auth_headers("student", subject="stu-2", student_id=other.id)

    fetched = client.get(f"{API}/waivers/{created['id']}", headers=own)
    assert fetched.status_code == 200
    assert fetched.json()["requested_amount"] == "75.00"
    assert client.get(f"{API}/waivers/{created['id']}", headers=stranger).status_code == 403
    assert client.get(f"{API}/waivers/missing", headers=own).status_code == 404


def test_amounts_beyond_storable_range_are_rejected(client, cohort, auth_headers):
    waiver = client.post(
        f"{API}/waivers",
        json={"student_id": cohort.student.id, "fee_type": "Tuition Fee", "amount": "1000000000000"},
        headers=auth_headers("staff"),
    )
    structure = client.post(
        f"{API}/fee-structures",
        json={
            "structure_name": "Oversized",
            "course_id": cohort.course.id,
            "batch_id": cohort.batch.id,
            "session_id": cohort.session.id,
            "tuition_fee": "100000000.00",
        },
        headers=auth_headers("finance"),
    )
    payment = client.post(
        f"{API}/payments/collect",
        json={"student_id": cohort.student.id, "amount": "NaN"},
        headers=auth_headers("staff"),
    )

    for response, field in ((waiver, "amount"), (structure, "tuition_fee"), (payment, "amount")):
        assert response.status_code == 422
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["field_errors"][0]["field"] == field


def test_openapi_documents_error_envelope(client):
    schema = client.get("/openapi.json").json()

    assert "ErrorResponse" in schema["components"]["schemas"]
    not_found = schema["paths"]["/api/v1/invoices/{invoice_id}"]["get"]["responses"]["404"]
    assert not_found["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
