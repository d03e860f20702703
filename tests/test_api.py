"""Tests for the read-only JSON API."""

import pytest
from fastapi.testclient import TestClient

import api.main as api_main


@pytest.fixture
def client():
    return TestClient(api_main.app)


def test_meta_years(client):
    resp = client.get("/meta/years")

    assert resp.status_code == 200
    assert resp.json() == {"years": [2021, 2022, 2023, 2024, 2025], "default_headline_year": 2024}


def test_rows_serialise_absent_values_as_null(client):
    rows = client.get("/rows").json()["rows"]

    assert rows[0]["year"] == 2021
    assert rows[0]["net_profit"] is None
    assert rows[3]["yoy_local"] == -39.1


def test_overview_endpoint(client):
    resp = client.post("/overview", json={})
    body = resp.json()

    assert resp.status_code == 200
    assert body["summary"]["revenue_loss_mvr_bn"] == 0.93
    assert body["filters"]["headline_year"] == 2024


def test_filters_are_applied(client):
    body = client.post("/overview", json={"headline_year": 2023}).json()

    assert body["summary"]["previous_year"] == 2022
    assert body["kpis"][0]["badge"] == "YoY 53.3%"


@pytest.mark.parametrize("path", ["/prices", "/volumes", "/table", "/narrative"])
def test_page_endpoints_respond(client, path):
    resp = client.post(path, json={"show_global": False})

    assert resp.status_code == 200
    assert resp.json()["filters"]["show_global"] is False


def test_export_table_csv(client):
    resp = client.post("/export/table", json={})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "filename=table.csv" in resp.headers["content-disposition"]
    assert "Local YoY" in resp.text.splitlines()[0]


def test_page_failure_returns_error_payload(client, monkeypatch):
    def boom(filters, ctx):
        raise ValueError("bad payload")

    monkeypatch.setattr(api_main, "compute_overview", boom)
    resp = client.post("/overview", json={})

    assert resp.status_code == 500
    assert resp.json() == {"error": "bad payload", "type": "ValueError"}
