import pytest
from fastapi.testclient import TestClient

from database.db import get_db
from main import app
from models.groups import Group as GroupModel
from routers.imports import get_import_service


@pytest.fixture
def client(session_factory, service):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_import_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert "X-Latency-Ms" in res.headers


def test_import_report(client, report_text):
    res = client.post("/v1/imports/", json={"text": report_text("1 Ivanov 85.5", "2 Petrov 90")})

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["rows_imported"] == 2
    assert body["data"]["rows_failed"] == []
    assert body["data"]["average_score"] == pytest.approx(87.75)


def test_missing_anchor_is_422_and_writes_nothing(client, session_factory):
    res = client.post("/v1/imports/", json={"text": "Дисциплина: Math\n1 Ivanov 85.5\n"})

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "MISSING_FIELD"
    with session_factory() as s:
        assert s.query(GroupModel).count() == 0


def test_summary_report_is_422(client):
    res = client.post("/v1/imports/", json={"text": "Сводка рейтингов по группе\nГруппа: CS-101\nMath 80\n"})
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "UNSUPPORTED_REPORT"


def test_read_and_export_subject(client, report_text):
    client.post("/v1/imports/", json={"text": report_text("1 Ivanov 85.5", "2 Petrov 90")})

    res = client.get("/v1/ratings/CS-101/math")
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert res.json()["message"] == "평점 조회 성공"
    data = res.json()["data"]
    assert data["subject_code"] == "Math"
    assert data["avg_score"] == pytest.approx(87.75)
    assert [(r["ordinal"], r["student_name"]) for r in data["ratings"]] == [(1, "Ivanov"), (2, "Petrov")]

    text = client.get("/v1/ratings/CS-101/Math/export").text
    assert "Группа: CS-101" in text
    assert "Дисциплина: Math" in text
    assert "1 Ivanov 85.50" in text

    summary = client.get("/v1/ratings/CS-101/summary/export").text
    assert "Math 87.75" in summary


def test_unknown_group_is_404(client):
    res = client.get("/v1/ratings/NOPE/Math")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


def test_background_job(client, service, report_text):
    res = client.post("/v1/imports/jobs", json={"text": report_text("1 Ivanov 85.5")})
    job_id = res.json()["data"]["job_id"]

    service.job(job_id).result(timeout=30)
    job = client.get(f"/v1/imports/jobs/{job_id}").json()["data"]

    assert job["status"] == "done"
    assert job["report"]["rows_imported"] == 1
    # 끝난 작업은 한 번 조회되면 제거됨
    assert client.get(f"/v1/imports/jobs/{job_id}").status_code == 404


def test_failed_background_job(client, service):
    res = client.post("/v1/imports/jobs", json={"text": "Группа: CS-101\n1 Ivanov 85\n"})
    job_id = res.json()["data"]["job_id"]

    service.job(job_id).exception(timeout=30)
    job = client.get(f"/v1/imports/jobs/{job_id}").json()["data"]

    assert job["status"] == "failed"
    assert job["error_code"] == "MISSING_FIELD"
    assert "subject" in job["error"]


def test_unknown_job_is_404(client):
    assert client.get("/v1/imports/jobs/missing").status_code == 404
