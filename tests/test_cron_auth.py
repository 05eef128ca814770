import pytest
from fastapi.testclient import TestClient

from ledge.config import settings
from ledge.models.results import IngestionResult, NightlyScoringResult
from ledge.orchestration import jobs
from api.dependencies import get_database
from api.main import app
from api.middleware.cron_auth import secret_matches

SECRET = "s3cret-value"


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    async def fake_nightly(database):
        recorded.append(("nightly", None))
        return NightlyScoringResult(scored=3, new_matches=1)

    async def fake_import(database, count=20, offset=0):
        recorded.append(("import", (count, offset)))
        return IngestionResult(mode="import")

    monkeypatch.setattr(jobs, "run_nightly_scoring", fake_nightly)
    monkeypatch.setattr(jobs, "run_import_bills", fake_import)
    monkeypatch.setattr(settings.app, "cron_secret", SECRET)
    app.dependency_overrides[get_database] = lambda: object()
    yield recorded
    app.dependency_overrides.clear()


def test_missing_secret_is_rejected(calls) -> None:
    response = TestClient(app).get("/api/cron/nightly-scoring")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert calls == []


def test_wrong_secret_is_rejected(calls) -> None:
    response = TestClient(app).get(
        "/api/cron/nightly-scoring", headers={"Authorization": "Bearer nope"}
    )

    assert response.status_code == 401
    assert calls == []


def test_bearer_secret_runs_driver(calls) -> None:
    response = TestClient(app).get(
        "/api/cron/nightly-scoring", headers={"Authorization": f"Bearer {SECRET}"}
    )

    assert response.status_code == 200
    assert response.json()["scored"] == 3
    assert calls == [("nightly", None)]


def test_query_secret_protects_import(calls) -> None:
    client = TestClient(app)

    assert client.get("/api/import-bills?count=5").status_code == 401
    response = client.get(f"/api/import-bills?count=5&offset=40&secret={SECRET}")

    assert response.status_code == 200
    assert calls == [("import", (5, 40))]


def test_unset_secret_rejects_everything(calls, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "cron_secret", None)

    response = TestClient(app).get("/api/cron/nightly-scoring", headers={"Authorization": "Bearer "})

    assert response.status_code == 401
    assert calls == []


def test_public_routes_are_open(calls) -> None:
    assert TestClient(app).get("/health").status_code == 200


def test_secret_matches() -> None:
    assert secret_matches("abc", "abc")
    assert not secret_matches("abc", "abd")
    assert not secret_matches("", "")
    assert not secret_matches("abc", None)
