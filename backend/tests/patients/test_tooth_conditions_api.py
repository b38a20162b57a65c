import io
import zipfile

from app.core.settings import settings


def test_health_and_config(api_client):
    assert api_client.get("/health").json() == {"status": "ok"}
    res = api_client.get("/config")
    assert res.status_code == 200
    assert res.json()["feature_flags"]["tooth_conditions_export"] is True


def test_derive_tooth_conditions(api_client, sample_treatments):
    res = api_client.post("/tooth-conditions", json={"treatments": sample_treatments})
    assert res.status_code == 200, res.text
    body = res.json()
    assert [(item["number"], item["condition"]) for item in body] == [
        (14, "extracted"),
        (15, "extracted"),
    ]
    assert body[0]["last_treatment"].startswith("2024-03-05")
    assert body[0]["notes"] == "cabut gigi 14 dan 15"


def test_derive_tooth_conditions_empty_payload(api_client):
    res = api_client.post("/tooth-conditions", json={"treatments": []})
    assert res.status_code == 200
    assert res.json() == []


def test_derive_tooth_conditions_tolerates_malformed_teeth(api_client):
    treatments = [
        {"id": 1, "date": "2024-01-01", "type": "Tambal Gigi", "teeth": "[11, 12]"},
        {"id": 2, "date": "2024-02-01", "type": "Pencabutan", "teeth": "{invalid json"},
    ]
    res = api_client.post("/tooth-conditions", json={"treatments": treatments})
    assert res.status_code == 200
    assert [item["condition"] for item in res.json()] == ["filled", "filled"]


def test_derive_tooth_conditions_tolerates_dirty_cost_and_notes(api_client):
    treatments = [
        {"id": 1, "date": "2024-01-10", "type": "Tambal Gigi", "teeth": [14, 15], "cost": ""},
        {
            "id": 2,
            "date": "2024-03-05",
            "type": "Pencabutan Gigi",
            "teeth": [14],
            "cost": "Rp 150.000",
            "notes": 5,
        },
    ]
    res = api_client.post("/tooth-conditions", json={"treatments": treatments})
    assert res.status_code == 200, res.text
    assert [(item["number"], item["condition"]) for item in res.json()] == [
        (14, "extracted"),
        (15, "filled"),
    ]


def test_derive_tooth_conditions_requires_treatment_date(api_client):
    res = api_client.post(
        "/tooth-conditions", json={"treatments": [{"type": "Tambal", "teeth": [11]}]}
    )
    assert res.status_code == 422


def test_odontogram_payload(api_client, sample_treatments):
    res = api_client.post("/tooth-conditions/odontogram", json={"treatments": sample_treatments})
    assert res.status_code == 200, res.text
    body = res.json()
    assert len(body["upper"]) == 16
    assert len(body["lower"]) == 16
    assert body["statistics"] == {"extracted": 2}
    upper = {cell["number"]: cell for cell in body["upper"]}
    assert upper[15]["condition_label"] == "Dicabut"
    assert upper[11]["condition"] == "healthy"


def test_export_zip(api_client, sample_treatments):
    payload = {
        "patients": [{"id": 1, "name": "Budi Santoso", "treatments": sample_treatments}],
        "include_basic_info": False,
    }
    res = api_client.post("/tooth-conditions/export", json=payload)
    assert res.status_code == 200, res.text
    assert res.headers["content-type"] == "application/zip"
    assert ".zip" in res.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(res.content)) as archive:
        assert "tooth_conditions.csv" in archive.namelist()
        assert "patients.csv" not in archive.namelist()


def test_export_csv_requires_basic_info(api_client):
    res = api_client.post(
        "/tooth-conditions/export",
        json={"format": "csv", "include_basic_info": False, "patients": []},
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "CSV format requires basic info to be included"


def test_export_csv(api_client):
    res = api_client.post(
        "/tooth-conditions/export",
        json={"format": "csv", "patients": [{"id": "p-1", "name": "Siti Aminah"}]},
    )
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert res.text.splitlines()[0].startswith("patient_id,name,")


def test_export_disabled_by_feature_flag(api_client, monkeypatch):
    monkeypatch.setattr(settings, "feature_tooth_conditions_export", False)
    res = api_client.post("/tooth-conditions/export", json={"patients": []})
    assert res.status_code == 404


def test_export_patient_limit(api_client, monkeypatch):
    monkeypatch.setattr(settings, "export_max_patients", 1)
    patients = [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]
    res = api_client.post("/tooth-conditions/export", json={"patients": patients})
    assert res.status_code == 413
