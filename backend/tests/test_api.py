# Overview: HTTP-level tests for the register, shift and location blueprints.

"""
API tests through the Flask test client.

Identity is forwarded by the upstream gateway in X-User-Id / X-User-Roles;
requests without it are rejected on write endpoints.
"""

from .conftest import CASHIER, MANAGER, OTHER_CASHIER, user_headers


def _open(client, register_id, amount="200.00", user=CASHIER):
    return client.post(
        f"/api/registers/{register_id}/shifts/open",
        json={"opening_amount": amount},
        headers=user_headers(user),
    )


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"


class TestRegisterRoutes:

    def test_create_requires_user(self, client, location):
        response = client.post("/api/registers", json={"location_id": location.id, "name": "Caja"})
        assert response.status_code == 401

    def test_create_and_get(self, client, location):
        response = client.post(
            "/api/registers",
            json={"location_id": location.id, "name": "Caja Centro"},
            headers=user_headers(),
        )
        assert response.status_code == 201
        register = response.get_json()["register"]
        assert register["code"] == "CAJA-001"

        response = client.get(f"/api/registers/{register['id']}")
        assert response.status_code == 200
        assert response.get_json()["register"]["current_shift"] is None

    def test_create_missing_fields(self, client):
        response = client.post("/api/registers", json={"name": "Caja"}, headers=user_headers())
        assert response.status_code == 400

    def test_get_unknown(self, client):
        assert client.get("/api/registers/999").status_code == 404

    def test_deactivate_with_open_shift(self, client, register, open_shift):
        response = client.post(f"/api/registers/{register.id}/deactivate", headers=user_headers())
        assert response.status_code == 409

    def test_patch_rejects_fields_outside_the_register(self, client, register):
        response = client.patch(
            f"/api/registers/{register.id}",
            json={"register_id": 5, "name": "Caja X"},
            headers=user_headers(),
        )
        assert response.status_code == 400
        assert client.get(f"/api/registers/{register.id}").get_json()["register"]["name"] == "Caja 1"

    def test_patch_updates_name(self, client, register):
        response = client.patch(f"/api/registers/{register.id}", json={"name": "Caja Norte"}, headers=user_headers())
        assert response.status_code == 200
        assert response.get_json()["register"]["name"] == "Caja Norte"

    def test_list_shows_current_shift(self, client, register, open_shift):
        registers = client.get("/api/registers").get_json()["registers"]
        assert registers[0]["current_shift"]["id"] == open_shift.id


class TestShiftRoutes:

    def test_open_and_close_balanced(self, client, register):
        response = _open(client, register.id)
        assert response.status_code == 201
        shift = response.get_json()["shift"]
        assert shift["status"] == "open"
        assert shift["opening_amount"] == "200.00"

        response = client.post(
            f"/api/shifts/{shift['id']}/close",
            json={"counted_amount": "200.00", "notes": "ok"},
            headers=user_headers(),
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["shift"]["status"] == "closed"
        assert body["reconciliation"]["status"] == "balanced"
        assert body["reconciliation"]["discrepancy"] == "0.00"

    def test_second_open_is_conflict(self, client, register, open_shift):
        response = _open(client, register.id, user=OTHER_CASHIER)
        assert response.status_code == 409

    def test_negative_opening_is_bad_request(self, client, register):
        assert _open(client, register.id, amount="-1").status_code == 400
        current = client.get(f"/api/registers/{register.id}/shifts/current").get_json()
        assert current["shift"] is None

    def test_close_with_denominations(self, client, open_shift):
        response = client.post(
            f"/api/shifts/{open_shift.id}/close",
            json={"denominations": {"bills": {"200": 1}, "coins": {"10": 5}}},
            headers=user_headers(),
        )
        assert response.status_code == 200
        assert response.get_json()["reconciliation"] == {
            "expected": "200.00",
            "counted": "250.00",
            "discrepancy": "50.00",
            "status": "over",
        }

    def test_out_of_range_count_is_bad_request(self, client, open_shift):
        for path in ("reconcile", "close"):
            response = client.post(
                f"/api/shifts/{open_shift.id}/{path}",
                json={"counted_amount": "1e30"},
                headers=user_headers(),
            )
            assert response.status_code == 400

        response = client.post(
            f"/api/shifts/{open_shift.id}/close",
            json={"denominations": {"bills": {"1000": 10 ** 30}}},
            headers=user_headers(),
        )
        assert response.status_code == 400
        assert client.get(f"/api/shifts/{open_shift.id}").get_json()["shift"]["status"] == "open"

    def test_close_by_other_cashier(self, client, open_shift):
        response = client.post(
            f"/api/shifts/{open_shift.id}/close",
            json={"counted_amount": "200"},
            headers=user_headers(OTHER_CASHIER),
        )
        assert response.status_code == 409

        response = client.post(
            f"/api/shifts/{open_shift.id}/close",
            json={"counted_amount": "200"},
            headers=user_headers(MANAGER, roles="manager"),
        )
        assert response.status_code == 200
        assert response.get_json()["shift"]["closed_by"] == MANAGER

    def test_close_twice_is_not_found(self, client, open_shift):
        payload = {"counted_amount": "200"}
        client.post(f"/api/shifts/{open_shift.id}/close", json=payload, headers=user_headers())
        response = client.post(f"/api/shifts/{open_shift.id}/close", json=payload, headers=user_headers())
        assert response.status_code == 404

    def test_current_shift_of_user(self, client, open_shift):
        response = client.get("/api/shifts/current", headers=user_headers())
        assert response.get_json()["shift"]["id"] == open_shift.id

        response = client.get("/api/shifts/current", headers=user_headers(OTHER_CASHIER))
        assert response.get_json()["shift"] is None

        assert client.get("/api/shifts/current").status_code == 401

    def test_history(self, client, open_shift):
        response = client.get("/api/shifts?status=open")
        assert [s["id"] for s in response.get_json()["shifts"]] == [open_shift.id]

        assert client.get("/api/shifts?status=bogus").status_code == 400
        assert client.get("/api/shifts?start_date=yesterday").status_code == 400


class TestMovementRoutes:

    def test_record_list_and_summary(self, client, open_shift):
        for movement_type, amount in (("withdrawal", "100"), ("deposit", "40")):
            response = client.post(
                f"/api/shifts/{open_shift.id}/movements",
                json={"movement_type": movement_type, "amount": amount},
                headers=user_headers(),
            )
            assert response.status_code == 201

        movements = client.get(f"/api/shifts/{open_shift.id}/movements").get_json()["movements"]
        assert [m["amount"] for m in movements] == ["200.00", "-100.00", "40.00"]

        summary = client.get(f"/api/shifts/{open_shift.id}/summary").get_json()["summary"]
        assert summary["net_cash_flow"] == "140.00"

    def test_record_reserved_type(self, client, open_shift):
        response = client.post(
            f"/api/shifts/{open_shift.id}/movements",
            json={"movement_type": "opening", "amount": "10"},
            headers=user_headers(),
        )
        assert response.status_code == 400

    def test_record_on_closed_shift(self, client, open_shift):
        client.post(f"/api/shifts/{open_shift.id}/close", json={"counted_amount": "200"}, headers=user_headers())
        response = client.post(
            f"/api/shifts/{open_shift.id}/movements",
            json={"movement_type": "deposit", "amount": "10"},
            headers=user_headers(),
        )
        assert response.status_code == 409

    def test_delete_manual_movement(self, client, open_shift):
        created = client.post(
            f"/api/shifts/{open_shift.id}/movements",
            json={"movement_type": "deposit", "amount": "10"},
            headers=user_headers(),
        ).get_json()["movement"]

        response = client.delete(f"/api/movements/{created['id']}", headers=user_headers())
        assert response.status_code == 204
        assert len(client.get(f"/api/shifts/{open_shift.id}/movements").get_json()["movements"]) == 1

    def test_mid_shift_reconcile(self, client, open_shift):
        response = client.post(
            f"/api/shifts/{open_shift.id}/reconcile",
            json={"counted_amount": "150"},
            headers=user_headers(),
        )
        assert response.status_code == 200
        assert response.get_json()["reconciliation"]["status"] == "short"

    def test_report_and_annotation(self, client, open_shift):
        response = client.post(
            f"/api/shifts/{open_shift.id}/annotations",
            json={"note": "Cambio de turno"},
            headers=user_headers(MANAGER),
        )
        assert response.status_code == 201

        report = client.get(f"/api/shifts/{open_shift.id}/report").get_json()["report"]
        assert report["reconciliation"] is None
        assert report["annotations"][0]["note"] == "Cambio de turno"


class TestLocationRoutes:

    def test_create_location_with_register(self, client):
        response = client.post("/api/locations", json={"name": "Sucursal Sur"}, headers=user_headers())
        assert response.status_code == 201
        location = response.get_json()["location"]
        assert location["register"]["name"] == "Caja Sucursal Sur"
        assert location["register"]["is_main"] is True

    def test_shift_config_roundtrip(self, client, location):
        response = client.patch(
            f"/api/locations/{location.id}/shift-config",
            json={"shift_duration_hours": 10},
            headers=user_headers(),
        )
        assert response.status_code == 200
        assert response.get_json()["shift_config"]["shift_duration_hours"] == 10

        config = client.get(f"/api/locations/{location.id}/shift-config").get_json()["shift_config"]
        assert config["shift_duration_hours"] == 10

        response = client.post(f"/api/locations/{location.id}/shift-config/reset", headers=user_headers())
        assert response.get_json()["shift_config"]["shift_duration_hours"] == 8

    def test_shift_config_rejects_unknown_key(self, client, location):
        response = client.patch(
            f"/api/locations/{location.id}/shift-config",
            json={"overtime": True},
            headers=user_headers(),
        )
        assert response.status_code == 400

    def test_payment_methods(self, client):
        response = client.post("/api/payment-methods", json={"name": "Tarjeta", "kind": "card"}, headers=user_headers())
        assert response.status_code == 201
        names = [m["name"] for m in client.get("/api/payment-methods").get_json()["payment_methods"]]
        assert names == ["Tarjeta"]
