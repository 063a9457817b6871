"""Tests for the FastAPI API."""

import pytest
from fastapi.testclient import TestClient

import bikestock.api
from bikestock.api import app


@pytest.fixture
def api_client(store, monkeypatch):
    """Create test client backed by a temporary store."""
    monkeypatch.setattr(bikestock.api, "get_entity_store", lambda: store)
    return TestClient(app)


@pytest.fixture
def lot_id(api_client):
    """Create a container with three bikes through the API."""
    response = api_client.post(
        "/api/containers",
        json={"name": "Lot-1", "exporter_name": "Osaka Motors", "import_date": "2024-02-01T00:00:00Z"},
    )
    assert response.status_code == 201
    container_id = response.json()["id"]

    response = api_client.post(
        f"/api/containers/{container_id}/import",
        json={
            "bikes": [
                {"model": "Suzuki Gixxer", "chassis": "CHAS001", "engine": "ENG001", "color": "Red", "buying_price": 400000},
                {"model": "Yamaha FZ", "chassis": "CHAS002", "engine": "ENG002", "color": "Blue", "buying_price": 350000},
            ],
            "text": "Honda CB,CHAS003,ENG003,Black\n",
        },
    )
    assert response.status_code == 201
    assert response.json()["count"] == 3
    return container_id


def sale_payload(chassis="CHAS001", price=480000, duration="2 years", **customer):
    fields = {"name": "Rahim Uddin", "phone": "017...", "nid": "N1", "address": "Mirpur"}
    fields.update(customer)
    return {
        "chassis": chassis,
        "customer": fields,
        "sale_price": price,
        "registration_duration": duration,
    }


class TestHealthCheck:
    def test_health_empty_store(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["store_initialized"] is False
        assert data["motorcycle_count"] == 0

    def test_health_with_stock(self, api_client, lot_id):
        data = api_client.get("/api/health").json()
        assert data["store_initialized"] is True
        assert data["motorcycle_count"] == 3

    def test_health_corrupted_store(self, api_client, store):
        store.data_dir.mkdir(parents=True)
        store.store_path.write_text("{broken")

        data = api_client.get("/api/health").json()
        assert data["status"] == "error"


class TestMotorcycles:
    def test_list_defaults_to_in_stock(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())

        data = api_client.get("/api/motorcycles").json()
        assert data["count"] == 2
        assert {m["chassis"] for m in data["motorcycles"]} == {"CHAS002", "CHAS003"}

        sold = api_client.get("/api/motorcycles", params={"status": "sold"}).json()
        assert [m["chassis"] for m in sold["motorcycles"]] == ["CHAS001"]

        everything = api_client.get("/api/motorcycles", params={"include_all": True}).json()
        assert everything["count"] == 3

    def test_list_search(self, api_client, lot_id):
        data = api_client.get("/api/motorcycles", params={"q": "eng002"}).json()
        assert [m["chassis"] for m in data["motorcycles"]] == ["CHAS002"]

        api_client.post("/api/sales", json=sale_payload())
        assert api_client.get("/api/motorcycles", params={"q": "gixxer"}).json()["count"] == 0
        sold = api_client.get("/api/motorcycles", params={"q": "gixxer", "status": "sold"}).json()
        assert sold["count"] == 1

    def test_create_single(self, api_client):
        response = api_client.post(
            "/api/motorcycles",
            json={"model": "Honda Shine", "chassis": "CHAS500", "engine": "ENG500", "color": "White", "buying_price": 120000},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "available"
        assert data["container_id"] is None

    def test_create_duplicate_chassis(self, api_client, lot_id):
        response = api_client.post(
            "/api/motorcycles", json={"model": "Honda Shine", "chassis": "CHAS001"}
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "DuplicateChassisError"

    def test_create_into_unknown_container(self, api_client):
        response = api_client.post(
            "/api/motorcycles",
            json={"model": "Honda Shine", "chassis": "CHAS500", "container_id": "missing"},
        )
        assert response.status_code == 422
        assert response.json()["error_type"] == "UnknownContainerError"

    def test_lookup(self, api_client, lot_id):
        response = api_client.get("/api/motorcycles/lookup", params={"chassis": " CHAS002 "})
        assert response.status_code == 200
        assert response.json()["model"] == "Yamaha FZ"

    def test_lookup_unknown_and_sold(self, api_client, lot_id):
        assert api_client.get("/api/motorcycles/lookup", params={"chassis": "NOPE"}).status_code == 404

        api_client.post("/api/sales", json=sale_payload())
        response = api_client.get("/api/motorcycles/lookup", params={"chassis": "CHAS001"})
        assert response.status_code == 409
        assert response.json()["error_type"] == "MotorcycleNotAvailableError"

    def test_get_not_found(self, api_client):
        response = api_client.get("/api/motorcycles/nonexistent")
        assert response.status_code == 404
        assert response.json()["error_type"] == "MotorcycleNotFoundError"

    def test_delete_unsold(self, api_client, lot_id):
        bike_id = api_client.get("/api/motorcycles/lookup", params={"chassis": "CHAS003"}).json()["id"]

        assert api_client.delete(f"/api/motorcycles/{bike_id}").status_code == 200
        assert api_client.get(f"/api/motorcycles/{bike_id}").status_code == 404

    def test_delete_sold(self, api_client, lot_id):
        bike_id = api_client.post("/api/sales", json=sale_payload()).json()["motorcycle"]["id"]

        response = api_client.delete(f"/api/motorcycles/{bike_id}")
        assert response.status_code == 409
        assert response.json()["error_type"] == "MotorcycleAlreadySoldError"

    def test_registration(self, api_client, lot_id):
        bike_id = api_client.post("/api/sales", json=sale_payload()).json()["motorcycle"]["id"]

        response = api_client.put(
            f"/api/motorcycles/{bike_id}/registration",
            json={"registration_number": "DHAKA-METRO-HA-12"},
        )
        assert response.status_code == 200
        assert response.json()["registration_number"] == "DHAKA-METRO-HA-12"

    def test_registration_unsold(self, api_client, lot_id):
        bike_id = api_client.get("/api/motorcycles/lookup", params={"chassis": "CHAS002"}).json()["id"]
        response = api_client.put(
            f"/api/motorcycles/{bike_id}/registration", json={"registration_number": "X-1"}
        )
        assert response.status_code == 409


class TestContainers:
    def test_list_with_summary(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())

        data = api_client.get("/api/containers").json()
        assert data["count"] == 1
        summary = data["containers"][0]
        assert summary["container"]["id"] == lot_id
        assert summary["unit_count"] == 3
        assert summary["sold_count"] == 1
        assert summary["investment"] == 750000
        assert summary["realized_profit"] == 80000

    def test_create_requires_exporter(self, api_client):
        response = api_client.post("/api/containers", json={"name": "Lot-1", "exporter_name": " "})
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidInputError"

    def test_get_unknown(self, api_client):
        assert api_client.get("/api/containers/missing").status_code == 404

    def test_import_unknown_container(self, api_client):
        response = api_client.post(
            "/api/containers/missing/import",
            json={"bikes": [{"model": "A", "chassis": "C1", "engine": "E1", "color": "Red"}]},
        )
        assert response.status_code == 422

    def test_import_nothing(self, api_client, lot_id):
        response = api_client.post(f"/api/containers/{lot_id}/import", json={"text": "\n\n"})
        assert response.status_code == 400

    def test_import_duplicate_rolls_back(self, api_client, lot_id):
        response = api_client.post(
            f"/api/containers/{lot_id}/import",
            json={"text": "Bajaj Pulsar,CHAS010,ENG010,Grey\nBajaj Pulsar,CHAS001,ENG011,Grey\n"},
        )
        assert response.status_code == 409
        assert api_client.get("/api/motorcycles/lookup", params={"chassis": "CHAS010"}).status_code == 404

    def test_report(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())

        response = api_client.get(f"/api/containers/{lot_id}/report")
        assert response.status_code == 200
        rows = {r["chassis"]: r for r in response.json()}
        assert rows["CHAS001"]["profit"] == 80000
        assert rows["CHAS002"]["profit"] == 0


class TestSales:
    def test_sell_first_time_buyer(self, api_client, lot_id):
        response = api_client.post("/api/sales", json=sale_payload())
        assert response.status_code == 201
        data = response.json()
        assert data["customer_created"] is True
        assert data["motorcycle"]["status"] == "sold"
        assert data["sale"]["sale_price"] == 480000
        assert data["customer"]["purchased_bike_ids"] == [data["motorcycle"]["id"]]

    def test_repeat_buyer_by_nid(self, api_client, lot_id):
        first = api_client.post("/api/sales", json=sale_payload()).json()
        second = api_client.post(
            "/api/sales", json=sale_payload("CHAS002", 420000, "10 years", phone="018...")
        ).json()

        assert second["customer_created"] is False
        assert second["customer"]["id"] == first["customer"]["id"]
        assert second["customer"]["phone"] == "017..."
        assert len(second["customer"]["purchased_bike_ids"]) == 2

    def test_sell_twice_conflicts(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())
        response = api_client.post("/api/sales", json=sale_payload(phone="019", nid="N9"))

        assert response.status_code == 409
        assert "no longer available" in response.json()["detail"]
        assert api_client.get("/api/sales").json()["count"] == 1

    def test_sell_unknown_chassis(self, api_client, lot_id):
        response = api_client.post("/api/sales", json=sale_payload("NOPE"))
        assert response.status_code == 404

    @pytest.mark.parametrize(
        "payload",
        [
            sale_payload(duration="5 years"),
            sale_payload(price=0),
            sale_payload(price=-5),
            sale_payload(name=" "),
            sale_payload(dob="17-05-1990"),
        ],
    )
    def test_sell_invalid_input(self, api_client, lot_id, payload):
        response = api_client.post("/api/sales", json=payload)
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidInputError"
        assert api_client.get("/api/stats/dashboard").json()["total_sales"] == 0

    def test_store_unavailable(self, api_client, lot_id, store):
        store.store_path.write_text("not json")

        response = api_client.post("/api/sales", json=sale_payload())
        assert response.status_code == 503
        assert response.json()["error_type"] == "StoreUnavailableError"

    def test_list_and_get_slip(self, api_client, lot_id):
        sale_id = api_client.post("/api/sales", json=sale_payload()).json()["sale"]["id"]

        data = api_client.get("/api/sales").json()
        assert data["count"] == 1
        listing = data["sales"][0]
        assert listing["id"] == sale_id
        assert listing["chassis"] == "CHAS001"
        assert listing["customer_name"] == "Rahim Uddin"

        slip = api_client.get(f"/api/sales/{sale_id}").json()
        assert slip["motorcycle"]["engine"] == "ENG001"
        assert slip["customer"]["address"] == "Mirpur"

    def test_get_unknown_sale(self, api_client):
        response = api_client.get("/api/sales/missing")
        assert response.status_code == 404
        assert response.json()["error_type"] == "SaleNotFoundError"


class TestCustomers:
    def test_search(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())
        api_client.post(
            "/api/sales",
            json=sale_payload("CHAS002", name="Karim Hossain", phone="018", nid="N2", address="Uttara"),
        )

        data = api_client.get("/api/customers", params={"q": "yamaha uttara"}).json()
        assert data["count"] == 1
        assert data["customers"][0]["name"] == "Karim Hossain"

        assert api_client.get("/api/customers").json()["count"] == 2

    def test_search_bad_month(self, api_client):
        response = api_client.get("/api/customers", params={"month": "2024/03"})
        assert response.status_code == 400

    def test_notes(self, api_client, lot_id):
        customer_id = api_client.post("/api/sales", json=sale_payload()).json()["customer"]["id"]

        response = api_client.put(f"/api/customers/{customer_id}/notes", json={"notes": "VIP"})
        assert response.status_code == 200
        assert api_client.get(f"/api/customers/{customer_id}").json()["notes"] == "VIP"

    def test_get_unknown(self, api_client):
        assert api_client.get("/api/customers/missing").status_code == 404


class TestStats:
    def test_dashboard(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())

        data = api_client.get("/api/stats/dashboard").json()
        assert data["total_motorcycles"] == 3
        assert data["in_stock"] == 2
        assert data["sold"] == 1
        assert data["total_revenue"] == 480000
        assert data["total_customers"] == 1

    def test_recent_sales(self, api_client, lot_id):
        api_client.post("/api/sales", json=sale_payload())
        api_client.post("/api/sales", json=sale_payload("CHAS002"))

        data = api_client.get("/api/stats/recent-sales", params={"limit": 1}).json()
        assert data["count"] == 1
