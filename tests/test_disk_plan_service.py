import pytest
from fastapi.testclient import TestClient

from diskprov.services.disk_plan_service.main import app


@pytest.fixture
def client():
    return TestClient(app)


class TestDiskPlanService:
    def test_health(self, client):
        response = client.get("/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_preview_scenario_a(self, client):
        response = client.post("/v1/disk-plans", json={
            "options": {
                "dialog_disk_1_size": 10,
                "disk_2_size": 5,
                "disk_2_thin_provisioned": "false",
                "dialog_disk_3_size": 20,
                "dialog_disk_3_bootable": "no",
            },
            "default_bootable": True,
            "datastore_name": "datastore1",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["disk_option_prefix"] == "disk"
        assert body["default_bootable"] is True
        assert [d["index"] for d in body["disks"]] == ["1", "2", "3"]
        assert [c["size_mb"] for c in body["add_disk_calls"]] == [10240, 5120, 20480]
        assert body["add_disk_calls"][1]["flags"]["thin_provisioned"] is False
        assert body["add_disk_calls"][2]["flags"]["bootable"] is False
        assert body["add_disk_calls"][0]["flags"]["datastore"] == "datastore1"
        assert body["skipped"] == []

    def test_zero_size_is_skipped(self, client):
        response = client.post("/v1/disk-plans", json={"options": {"disk_1_size": 0}, "datastore_name": "ds"})
        body = response.json()
        assert body["add_disk_calls"] == []
        assert body["skipped"] == ["1"]

    def test_custom_prefix_and_dialog_overlay(self, client):
        response = client.post("/v1/disk-plans", json={
            "options": {"vol_1_size": 1, "dialog": {"vol_1_size": 4}},
            "disk_option_prefix": "vol",
            "datastore_name": "ds",
        })
        assert response.json()["add_disk_calls"][0]["size_mb"] == 4096

    def test_empty_options_rejected(self, client):
        response = client.post("/v1/disk-plans", json={"options": {}, "datastore_name": "ds"})
        assert response.status_code == 400

    def test_blank_prefix_rejected(self, client):
        response = client.post("/v1/disk-plans", json={"options": {"disk_1_size": 1}, "disk_option_prefix": "  ", "datastore_name": "ds"})
        assert response.status_code == 422

    @pytest.mark.parametrize("payload", [
        {"options": {"disk_1_size": 1}},
        {"options": {"disk_1_size": 1}, "datastore_name": ""},
    ])
    def test_datastore_name_is_required(self, client, payload):
        response = client.post("/v1/disk-plans", json=payload)
        assert response.status_code == 422
