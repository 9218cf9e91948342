"""
End-to-end flows over HTTP: cart -> checkout -> approve -> pay -> complete
-> return -> fine -> feedback.
"""


def _checkout(client, catalog, headers):
    r = client.post("/cart", json={"itemType": "ASSET", "assetId": catalog["a1"].id, "qty": 2}, headers=headers)
    assert r.status_code == 201, r.text
    r = client.post("/cart", json={"itemType": "SERVICE", "serviceId": catalog["s1"].id}, headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["totalAmount"] == "200000.00"

    r = client.post("/bookings/checkout", json={
        "startDate": "2025-01-01", "endDate": "2025-01-03", "notes": "Wisuda",
    }, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["booking"]


def test_full_rental_flow(client, catalog, gateway, borrower_headers, admin_headers):
    booking = _checkout(client, catalog, borrower_headers)
    assert booking["status"] == "WAITING"
    assert booking["totalAmount"] == "200000.00"
    assert client.get("/cart", headers=borrower_headers).json()["items"] == []

    r = client.patch(f"/bookings/{booking['id']}/approve", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["booking"]["status"] == "CONFIRMED"

    r = client.post(f"/payments/create/{booking['id']}", headers=borrower_headers)
    assert r.status_code == 201, r.text
    payment_id = r.json()["paymentId"]
    assert r.json()["paymentUrl"].startswith("https://pay.test/UMC-")

    gateway.raw_status = "settlement"
    r = client.get(f"/payments/{payment_id}/status", headers=borrower_headers)
    assert r.status_code == 200, r.text
    assert r.json()["paymentStatus"] == "PAID"
    assert r.json()["gatewayStatus"] == "settlement"
    assert r.json()["paidAt"] is not None

    r = client.patch(f"/bookings/{booking['id']}/complete", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["booking"]["status"] == "COMPLETED"

    asset_item = next(it for it in booking["items"] if it["itemType"] == "ASSET")
    r = client.post("/returns", json={
        "bookingItemId": asset_item["id"], "condition": "MAJOR_DAMAGE",
    }, headers=admin_headers)
    assert r.status_code == 201, r.text
    proposal = r.json()["fineProposal"]
    assert proposal["amount"] == "500000.00"

    r = client.post("/fines", json={**proposal, "amount": "350000"}, headers=admin_headers)
    assert r.status_code == 201, r.text
    assert r.json()["amount"] == "350000.00"
    assert client.get("/fines?paid=false", headers=borrower_headers).json()["total"] == 1

    r = client.post("/feedbacks", json={"bookingId": booking["id"], "rating": 5}, headers=borrower_headers)
    assert r.status_code == 201, r.text

    notifications = client.get("/notifications", headers=borrower_headers).json()
    assert notifications["unreadCount"] == notifications["total"] >= 5


def test_second_payment_is_409_with_payment_id(client, catalog, borrower_headers, admin_headers):
    booking = _checkout(client, catalog, borrower_headers)
    client.patch(f"/bookings/{booking['id']}/approve", headers=admin_headers)
    first = client.post(f"/payments/create/{booking['id']}", headers=borrower_headers).json()

    r = client.post(f"/payments/create/{booking['id']}", headers=borrower_headers)

    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "PAYMENT_EXISTS"
    assert r.json()["detail"]["paymentId"] == first["paymentId"]
    listed = client.get("/bookings", headers=borrower_headers).json()["items"]
    assert listed[0]["payActionHint"] is False


def test_gateway_outage_is_502(client, catalog, gateway, borrower_headers, admin_headers):
    booking = _checkout(client, catalog, borrower_headers)
    client.patch(f"/bookings/{booking['id']}/approve", headers=admin_headers)
    gateway.transport_down = True

    r = client.post(f"/payments/create/{booking['id']}", headers=borrower_headers)

    assert r.status_code == 502
    assert r.json()["detail"] == {"message": "connection refused", "code": "TRANSPORT_ERROR"}


def test_reject_with_reason(client, catalog, borrower_headers, admin_headers):
    booking = _checkout(client, catalog, borrower_headers)

    r = client.patch(f"/bookings/{booking['id']}/reject", json={"reason": "Alat dipakai UKM"}, headers=admin_headers)

    assert r.status_code == 200, r.text
    assert r.json()["booking"]["rejectReason"] == "Alat dipakai UKM"
    detail = client.get(f"/bookings/{booking['id']}", headers=borrower_headers).json()
    assert [log["newStatus"] for log in detail["statusLogs"]] == ["WAITING", "REJECTED"]


def test_wrong_state_is_409(client, catalog, borrower_headers, admin_headers):
    booking = _checkout(client, catalog, borrower_headers)
    client.patch(f"/bookings/{booking['id']}/approve", headers=admin_headers)

    r = client.patch(f"/bookings/{booking['id']}/cancel", headers=borrower_headers)

    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "CONFLICT"


def test_auth_is_required(client, catalog, borrower_headers):
    assert client.get("/cart").status_code == 401
    assert client.get("/bookings/admin/all", headers=borrower_headers).status_code == 403
    assert client.get("/bookings/admin/all", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_validation_errors_are_400(client, catalog, borrower_headers):
    r = client.post("/bookings/checkout", json={"startDate": "2025-01-01", "endDate": "2025-01-03"},
                    headers=borrower_headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"

    r = client.post("/cart", json={"itemType": "ASSET"}, headers=borrower_headers)
    assert r.status_code == 422


def test_delete_waiting_booking(client, catalog, borrower_headers):
    booking = _checkout(client, catalog, borrower_headers)

    r = client.delete(f"/bookings/{booking['id']}", headers=borrower_headers)

    assert r.status_code == 200, r.text
    assert client.get(f"/bookings/{booking['id']}", headers=borrower_headers).status_code == 404


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
