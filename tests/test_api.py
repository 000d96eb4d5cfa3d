"""
HTTP API tests through FastAPI's TestClient
"""

import json

from app.models import PAYMENT_PAID, Appointment
from app.webhook_security import PAYSTACK_SIGNATURE_HEADER, create_webhook_signature

SECRET = "sk_test_secret"


def book(client, auth, customer, provider, service, start="10:00", day="2030-01-15"):
    return client.post(
        "/appointments",
        json={"provider": provider.id, "providerServices": [service.id], "date": day, "startTime": start},
        headers=auth(customer),
    )


class TestAppointmentsApi:
    def test_create_and_fetch(self, client, auth, customer, provider, haircut):
        response = book(client, auth, customer, provider, haircut)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["paymentStatus"] == "pending"
        assert body["notificationStatus"] == "unread"
        assert body["providerServices"] == [haircut.id]

        fetched = client.get(f"/appointments/{body['id']}", headers=auth(provider))
        assert fetched.status_code == 200
        assert fetched.json()["id"] == body["id"]

    def test_conflict_returns_409(self, client, auth, customer, provider, haircut):
        assert book(client, auth, customer, provider, haircut, start="10:00").status_code == 201

        response = book(client, auth, customer, provider, haircut, start="10:45")

        assert response.status_code == 409
        assert response.json() == {"detail": "Provider is unavailable at the selected time."}

    def test_invalid_start_time_is_422(self, client, auth, customer, provider, haircut):
        response = book(client, auth, customer, provider, haircut, start="25:99")
        assert response.status_code == 422

    def test_foreign_service_is_400(self, client, auth, customer, provider, make_user, make_service):
        other = make_user("provider")
        response = book(client, auth, customer, provider, make_service(other))
        assert response.status_code == 400

    def test_invalid_token_is_401(self, client, provider, haircut):
        response = client.post(
            "/appointments",
            json={"provider": provider.id, "providerServices": [haircut.id], "date": "2030-01-15", "startTime": "10:00"},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401

    def test_stranger_gets_403(self, client, auth, customer, provider, haircut, make_user):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]

        response = client.get(f"/appointments/{appointment_id}", headers=auth(make_user("customer")))
        assert response.status_code == 403

    def test_cancel_then_rebook(self, client, auth, customer, provider, haircut):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]

        cancelled = client.patch(
            f"/appointments/{appointment_id}", json={"status": "cancelled"}, headers=auth(customer)
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"

        assert book(client, auth, customer, provider, haircut).status_code == 201

    def test_invalid_transition_is_400(self, client, auth, customer, provider, haircut):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]

        response = client.patch(
            f"/appointments/{appointment_id}", json={"status": "completed"}, headers=auth(provider)
        )
        assert response.status_code == 400

    def test_listings(self, client, auth, customer, provider, admin, haircut):
        book(client, auth, customer, provider, haircut)

        assert len(client.get("/appointments/mine", headers=auth(customer)).json()) == 1
        assert len(client.get("/appointments/provider", headers=auth(provider)).json()) == 1
        assert len(client.get("/appointments", headers=auth(admin)).json()) == 1
        assert client.get("/appointments", headers=auth(customer)).status_code == 403
        assert client.get("/appointments/provider", headers=auth(customer)).status_code == 403

    def test_notification_status(self, client, auth, customer, provider, haircut):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]

        response = client.patch(
            f"/appointments/{appointment_id}/notification",
            json={"notificationStatus": "read"},
            headers=auth(provider),
        )
        assert response.status_code == 200
        assert response.json()["notificationStatus"] == "read"

    def test_delete(self, client, auth, customer, provider, haircut, db):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]

        response = client.delete(f"/appointments/{appointment_id}", headers=auth(customer))

        assert response.status_code == 200
        assert db.query(Appointment).count() == 0
        assert client.get(f"/appointments/{appointment_id}", headers=auth(customer)).status_code == 404

    def test_manual_expiry_requires_admin(self, client, auth, customer, admin):
        assert client.post("/appointments/expire", headers=auth(customer)).status_code == 403

        response = client.post("/appointments/expire", headers=auth(admin))
        assert response.status_code == 200
        assert response.json() == {"expired": 0}


class TestPaymentsApi:
    def test_init_verify_and_webhook_replay(self, client, auth, customer, provider, haircut, db):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]

        init = client.post("/payments/init", json={"appointmentId": appointment_id}, headers=auth(customer))
        assert init.status_code == 200
        reference = init.json()["reference"]
        assert init.json()["split"]["total_to_pay"] in ("105.00", 105.0)

        verify = client.post("/payments/verify", json={"reference": reference}, headers=auth(customer))
        assert verify.status_code == 200
        assert verify.json()["paymentStatus"] == PAYMENT_PAID

        db.expire_all()
        paid_at = db.query(Appointment).filter(Appointment.id == appointment_id).one().payment_paid_at

        body = json.dumps({"event": "charge.success", "data": {"reference": reference}}).encode()
        webhook = client.post(
            "/payments/webhook",
            content=body,
            headers={PAYSTACK_SIGNATURE_HEADER: create_webhook_signature(SECRET, body)},
        )
        assert webhook.status_code == 200
        assert webhook.json() == {"received": True, "settled": False}

        db.expire_all()
        assert db.query(Appointment).filter(Appointment.id == appointment_id).one().payment_paid_at == paid_at

    def test_webhook_bad_signature_is_401(self, client):
        body = b'{"event":"charge.success","data":{"reference":"bk_1_1"}}'
        response = client.post("/payments/webhook", content=body, headers={PAYSTACK_SIGNATURE_HEADER: "deadbeef"})
        assert response.status_code == 401

    def test_gateway_failure_is_502(self, client, auth, customer, provider, haircut, fake_paystack):
        appointment_id = book(client, auth, customer, provider, haircut).json()["id"]
        fake_paystack.fail_with = 500

        response = client.post("/payments/init", json={"appointmentId": appointment_id}, headers=auth(customer))
        assert response.status_code == 502

    def test_split_preview(self, client):
        response = client.get("/payments/split", params={"amount": "100"})

        assert response.status_code == 200
        body = response.json()
        assert float(body["total_to_pay"]) == 105.0
        assert float(body["platform_total"]) == 10.0
        assert float(body["provider_net"]) == 95.0

    def test_split_preview_rejects_zero(self, client):
        assert client.get("/payments/split", params={"amount": "0"}).status_code == 400

    def test_provider_subaccount(self, client, auth, make_user):
        new_provider = make_user("provider")

        response = client.post(
            "/payments/subaccount",
            json={"businessName": "Kofi Cuts", "settlementBank": "058", "accountNumber": "0123456789"},
            headers=auth(new_provider),
        )
        assert response.status_code == 200
        assert response.json()["subaccountCode"] == "ACCT_new"


class TestCatalogConfigAndAudit:
    def test_provider_service_catalog(self, client, auth, provider, customer):
        created = client.post(
            "/provider-services",
            json={"name": "Braiding", "price": "250.00", "duration": 180},
            headers=auth(provider),
        )
        assert created.status_code == 201

        listed = client.get("/provider-services", params={"provider": provider.id})
        assert [s["name"] for s in listed.json()] == ["Braiding"]

        assert client.post(
            "/provider-services", json={"name": "X", "price": "1.00"}, headers=auth(customer)
        ).status_code == 403

    def test_config_defaults_and_admin_update(self, client, auth, admin, customer):
        config = client.get("/config").json()
        assert config["commissionPercent"] == 15.0
        assert config["customerFeePercent"] == 5.0

        assert client.put("/config/customerFeePercent", json={"value": 8}, headers=auth(customer)).status_code == 403
        assert client.put("/config/customerFeePercent", json={"value": 500}, headers=auth(admin)).status_code == 400

        updated = client.put("/config/customerFeePercent", json={"value": 8}, headers=auth(admin))
        assert updated.status_code == 200
        assert client.get("/config").json()["customerFeePercent"] == 8

        split = client.get("/payments/split", params={"amount": "100"}).json()
        assert float(split["total_to_pay"]) == 108.0

    def test_config_stores_other_keys_verbatim(self, client, auth, admin):
        client.put("/config/categories", json={"value": ["Hair", "Nails"]}, headers=auth(admin))
        assert client.get("/config").json()["categories"] == ["Hair", "Nails"]

    def test_audit_log_listing(self, client, auth, admin, customer, provider, haircut):
        book(client, auth, customer, provider, haircut)

        assert client.get("/audit-logs", headers=auth(customer)).status_code == 403
        logs = client.get("/audit-logs", headers=auth(admin)).json()
        assert logs[0]["action"] == "create"
        assert logs[0]["targetModel"] == "Appointment"


class TestRealtimeAndHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "payments": "configured"}

    def test_health_reports_unconfigured_payments(self, client, gateway):
        gateway.secret_key = ""
        assert client.get("/health").json()["payments"] == "not_configured"

    def test_security_headers(self, client):
        response = client.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_websocket_joins_user_room(self, client, auth, provider):
        token = auth(provider)["Authorization"].split(" ", 1)[1]
        with client.websocket_connect(f"/ws/notifications?token={token}") as websocket:
            hello = websocket.receive_json()
            assert hello == {"event": "connected", "data": {"room": str(provider.id)}}

            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"
