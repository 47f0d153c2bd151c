import pytest
from fastapi.testclient import TestClient

from api import deps
from app.main import app
from app.settings import settings
from domain.services.ats_scoring import AtsScoringEngine
from domain.services.chat import ChatService
from domain.services.generation import GenerationService
from tests.factories import JOB_TEXT, MASTER_CV, ats_payload, tailoring_payload


@pytest.fixture
def client(monkeypatch, session_factory, jobs_repo, analyses_repo, chat_repo, files, renderer, llm):
    monkeypatch.setattr(settings, "API_TOKEN", None)
    app.dependency_overrides.update({
        deps.get_session_factory: lambda: session_factory,
        deps.get_jobs_repo: lambda: jobs_repo,
        deps.get_files_repo: lambda: files,
        deps.get_ats_engine: lambda: AtsScoringEngine(jobs_repo, analyses_repo, chat_fn=llm),
        deps.get_generation_service: lambda: GenerationService(jobs_repo, renderer, chat_fn=llm),
        deps.get_chat_service: lambda: ChatService(jobs_repo, chat_repo, chat_fn=llm),
    })
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def job_id(client):
    assert client.put("/cv/master", json={"cvJson": MASTER_CV}).status_code == 200
    resp = client.post("/jobs", json={
        "jobTitle": "Senior Backend Engineer", "companyName": "Example GmbH", "jobDescriptionText": JOB_TEXT})
    assert resp.status_code == 201
    return resp.json()["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "database": "ok"}


def test_bearer_token_is_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "API_TOKEN", "secret")
    assert client.get("/jobs/jobapp_x").status_code == 401
    assert client.get("/jobs/jobapp_x", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/jobs/jobapp_x", headers={"Authorization": "Bearer secret"}).status_code == 404
    assert client.get("/health").status_code == 200


def test_job_and_master_cv_round_trip(client, job_id):
    job = client.get(f"/jobs/{job_id}").json()
    assert job["companyName"] == "Example GmbH"
    assert job["status"] == "Not Applied"
    assert job["generationStatus"] == "none"
    assert client.get("/cv/master").json()["cvJson"] == MASTER_CV


def test_generate_finalize_download(client, llm, job_id):
    llm.queue(tailoring_payload(letter="Start: [[ASK_USER:Earliest Start Date]]"))
    resp = client.post(f"/generator/{job_id}", json={"language": "en", "theme": "classic"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "pending_input"
    assert body["requiredInputs"] == [{"name": "Earliest Start Date", "type": "date"}]

    resp = client.post(f"/generator/{job_id}/finalize",
                       json={"userInputData": {"Earliest Start Date": "2026-03-01"}})
    assert resp.status_code == 200
    result = resp.json()
    assert result["status"] == "success"

    pdf = client.get(f"/generator/download/{result['cvFilename']}")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    view = client.get(f"/generator/{job_id}").json()
    assert view["status"] == "finalized"
    assert view["generatedCoverLetterFilename"] == result["coverLetterFilename"]


def test_submit_and_draft_edit(client, llm, job_id):
    llm.queue(tailoring_payload(letter="Salary: [[ASK_USER:Salary]]"))
    client.post(f"/generator/{job_id}")
    resp = client.post(f"/generator/{job_id}/submit", json={"userInputData": {}})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "missing_precondition"

    resp = client.post(f"/generator/{job_id}/submit", json={"userInputData": {"Salary": "70k"}})
    assert resp.json()["draftCoverLetterText"] == "Salary: 70k"

    resp = client.put(f"/generator/{job_id}/draft", json={"draftCoverLetterText": "Hand edited"})
    assert resp.status_code == 200
    assert resp.json()["draftCoverLetterText"] == "Hand edited"

    assert client.post(f"/generator/{job_id}/render-cover-letter-pdf").json()["coverLetterFilename"]


def test_state_conflict_is_409_with_current_status(client, job_id):
    resp = client.post(f"/generator/{job_id}/finalize")
    assert resp.status_code == 409
    assert resp.json()["kind"] == "state_conflict"
    assert resp.json()["currentStatus"] == "none"


def test_generate_without_description_is_400(client, llm):
    client.put("/cv/master", json={"cvJson": MASTER_CV})
    job_id = client.post("/jobs", json={"jobTitle": "Dev", "companyName": "X"}).json()["id"]
    resp = client.post(f"/generator/{job_id}")
    assert resp.status_code == 400
    assert llm.calls == []


def test_llm_failure_is_502_with_kind(client, llm, job_id):
    llm.queue("garbage")
    resp = client.post(f"/generator/{job_id}")
    assert resp.status_code == 502
    assert resp.json()["kind"] == "validation"
    assert client.get(f"/generator/{job_id}").json()["status"] == "error"


def test_download_rejects_unknown_and_traversal(client, files):
    files.ensure_dir()
    assert client.get("/generator/download/missing.pdf").status_code == 404
    assert client.get("/generator/download/..%2F..%2Fetc%2Fpasswd").status_code == 404
    assert client.get("/generator/download/notes.txt").status_code == 404


def test_ats_scan_then_poll(client, llm, job_id):
    llm.queue(ats_payload(), ats_payload(atsScore=91))
    resp = client.post("/ats/scan", json={"jobApplicationId": job_id})
    assert resp.status_code == 202
    analysis_id = resp.json()["analysisId"]

    record = client.get(f"/ats/scores/{analysis_id}").json()
    assert record["status"] == "completed"
    assert record["score"] == 78
    assert record["skillMatchDetails"]["skillMatchPercentage"] == 67

    resp = client.post("/ats/scan", json={"jobApplicationId": job_id, "analysisId": analysis_id})
    assert resp.json()["analysisId"] == analysis_id
    assert client.get(f"/ats/job/{job_id}").json()["score"] == 91


def test_ats_errors(client, job_id):
    assert client.get("/ats/scores/ats_missing").status_code == 404
    assert client.post("/ats/scan", json={"jobApplicationId": "jobapp_missing"}).status_code == 404
    assert client.get(f"/ats/job/{job_id}").status_code == 404


def test_chat_round_trip(client, llm, job_id):
    llm.queue("Python and FastAPI.")
    resp = client.post(f"/chat/{job_id}", json={"question": "Which stack?"})
    assert resp.json() == {"answer": "Python and FastAPI."}
    history = client.get(f"/chat/{job_id}/history").json()["history"]
    assert [m["sender"] for m in history] == ["user", "ai"]


def test_chat_validates_question(client, job_id):
    assert client.post(f"/chat/{job_id}", json={"question": ""}).status_code == 422
    assert client.post(f"/chat/{job_id}", json={"question": "x" * 1001}).status_code == 422


def test_rescan_with_another_job_is_409(client, llm, job_id):
    llm.queue(ats_payload())
    analysis_id = client.post("/ats/scan", json={"jobApplicationId": job_id}).json()["analysisId"]
    other = client.post("/jobs", json={
        "jobTitle": "Designer", "companyName": "Other Co", "jobDescriptionText": "Figma wizard wanted."}).json()["id"]
    resp = client.post("/ats/scan", json={"jobApplicationId": other, "analysisId": analysis_id})
    assert resp.status_code == 409
    assert resp.json()["kind"] == "state_conflict"
    assert client.get(f"/ats/scores/{analysis_id}").json()["jobApplicationId"] == job_id
