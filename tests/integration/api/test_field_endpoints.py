import uuid
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from models import Field, FieldStatus


@pytest.mark.integration
class TestFieldEndpoints:

    def test_create_field(self, client: TestClient, system_field_types):
        payload = {
            "name": "Technology Type",
            "type": "Select",
            "values": ["Solar PV", "Wind Onshore"],
            "isRequired": True,
            "metadata": {"group": "Technical"},
        }

        response = client.post("/api/v1/fields/", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Technology Type"
        assert data["status"] == "Active"
        assert data["isRequired"] is True
        assert data["metadata"] == {"group": "Technical"}

    def test_create_with_unknown_parent(self, client: TestClient, system_field_types):
        response = client.post("/api/v1/fields/", json={"name": "County", "type": "Text", "parent": "Nowhere"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "validation_error"
        assert detail["field"] == "parent"

    def test_create_duplicate(self, client: TestClient, power_fields):
        response = client.post("/api/v1/fields/", json={"name": "Planned COD", "type": "Date"})

        assert response.status_code == 409

    def test_list_fields(self, client: TestClient, power_fields):
        response = client.get("/api/v1/fields/", params={"search": "capacity", "limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["totalPages"] == 2
        assert len(data["items"]) == 1

    def test_list_fields_by_status(self, client: TestClient, power_fields):
        client.delete(f"/api/v1/fields/{power_fields['Planned COD'].id}/")

        response = client.get("/api/v1/fields/", params={"status": "Archived"})

        assert [item["name"] for item in response.json()["items"]] == ["Planned COD"]

    def test_hierarchy(self, client: TestClient, power_fields):
        response = client.get("/api/v1/fields/hierarchy/")

        assert response.status_code == 200
        data = response.json()
        assert {item["name"] for item in data["Technology Type"]} == {
            "Nameplate Capacity (MW)", "Energy Storage Capacity (MWh)",
        }
        assert "root" in data

    def test_children_and_by_name(self, client: TestClient, power_fields):
        children = client.get("/api/v1/fields/children/", params={"name": "Technology Type"})
        by_name = client.get("/api/v1/fields/by-name/", params={"name": "Planned COD"})
        missing = client.get("/api/v1/fields/by-name/", params={"name": "Nope"})

        assert len(children.json()) == 2
        assert by_name.json()["type"] == "Date"
        assert missing.status_code == 404

    def test_update_field(self, client: TestClient, power_fields):
        field = power_fields["Planned COD"]

        response = client.patch(f"/api/v1/fields/{field.id}/", json={
            "description": "Planned Commercial Operation Date",
            "parent": "Project Status",
        })

        assert response.status_code == 200
        assert response.json()["parent"] == "Project Status"

    def test_update_with_blank_name(self, client: TestClient, power_fields):
        field = power_fields["Planned COD"]

        response = client.patch(f"/api/v1/fields/{field.id}/", json={"name": "   "})

        assert response.status_code == 422
        assert client.get(f"/api/v1/fields/{field.id}/").json()["name"] == "Planned COD"

    def test_update_strips_parent(self, client: TestClient, power_fields):
        field = power_fields["Planned COD"]

        response = client.patch(f"/api/v1/fields/{field.id}/", json={"parent": " Project Status "})

        assert response.status_code == 200
        assert response.json()["parent"] == "Project Status"

    def test_update_creating_cycle(self, client: TestClient, power_fields):
        field = power_fields["Technology Type"]

        response = client.patch(f"/api/v1/fields/{field.id}/", json={"parent": "Nameplate Capacity (MW)"})

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "parent"

    def test_delete_archives(self, client: TestClient, db_session: Session, power_fields):
        field = power_fields["NERC Compliance Required"]

        response = client.delete(f"/api/v1/fields/{field.id}/")

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(Field, field.id).status == FieldStatus.ARCHIVED

    def test_delete_parent_conflicts(self, client: TestClient, db_session: Session, power_fields):
        parent = power_fields["Technology Type"]

        response = client.delete(f"/api/v1/fields/{parent.id}/")

        assert response.status_code == 409
        db_session.expire_all()
        assert db_session.get(Field, parent.id).status == FieldStatus.ACTIVE
        child = db_session.get(Field, power_fields["Nameplate Capacity (MW)"].id)
        assert child.parent == "Technology Type"

    def test_get_missing_field(self, client: TestClient, system_field_types):
        response = client.get(f"/api/v1/fields/{uuid.uuid4()}/")

        assert response.status_code == 404

    def test_bulk_create(self, client: TestClient, system_field_types):
        response = client.post("/api/v1/fields/bulk/", json=[
            {"name": "PPA Status", "type": "Select", "values": ["Executed", "Merchant"]},
            {"name": "PPA Price ($/MWh)", "type": "Currency", "parent": "PPA Status"},
            {"name": "PPA Term", "type": "Years"},
        ])

        assert response.status_code == 201
        data = response.json()
        assert [item["name"] for item in data["created"]] == ["PPA Status", "PPA Price ($/MWh)"]
        assert data["errors"][0]["index"] == 2
        assert data["errors"][0]["field"] == "type"

    def test_import_csv(self, client: TestClient, system_field_types):
        content = (
            "name,type,parent,values\n"
            "State/Province,Select,,Texas|Nevada\n"
            "County,Text,State/Province,\n"
            ",Text,,\n"
            "Latitude,Angle,County,\n"
        )

        response = client.post("/api/v1/fields/import/", params={"format": "csv"}, json={"content": content})

        assert response.status_code == 201
        data = response.json()
        assert [item["name"] for item in data["created"]] == ["State/Province", "County"]
        assert [error["index"] for error in data["errors"]] == [2, 3]

    def test_export_csv(self, client: TestClient, power_fields):
        response = client.get("/api/v1/fields/export/", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "Technology Type" in response.text
