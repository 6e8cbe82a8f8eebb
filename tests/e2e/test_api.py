import asyncio

import pytest

from aibooth.main import app
from aibooth.api import dependencies
from aibooth.engines.prediction.poller import ResultPoller


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.text == "OK"


@pytest.mark.asyncio
async def test_root_info(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["api_v1"] == "/api/v1"


@pytest.mark.asyncio
async def test_submit_then_status(client, predictor, publisher, photo_base64):
    response = await client.post(
        "/api/v1/jobs",
        json={"id": "job1", "prompt": "make it sunset", "photo": photo_base64}
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "image": "http://x/final.png"}
    assert predictor.status_calls == ["tok1"]

    response = await client.get("/api/v1/status", params={"id": "job1"})
    assert response.status_code == 200
    assert response.json() == {"received": True, "image": "http://x/final.png"}

    publisher.publish.assert_awaited_once()


@pytest.mark.asyncio
async def test_status_unknown_id(client):
    response = await client.get("/api/v1/status", params={"id": "never-submitted"})
    assert response.status_code == 200
    assert response.json() == {"received": False}


@pytest.mark.asyncio
async def test_status_missing_id(client):
    response = await client.get("/api/v1/status")
    assert response.status_code == 400
    assert response.json()["error"] == "Missing id"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"id": "job1", "photo": "abc"}, {"id": "job1", "prompt": "p"}, {}])
async def test_submit_missing_fields(client, predictor, storage, body):
    response = await client.post("/api/v1/jobs", json=body)
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Missing prompt or photo"
    assert data["code"] == 400
    assert predictor.submit_calls == []
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_submit_malformed_body(client):
    response = await client.post(
        "/api/v1/jobs",
        content=b"{not json",
        headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 422
    assert response.json()["code"] == 422


@pytest.mark.asyncio
async def test_prediction_error_is_502_and_not_received(
    client, make_predictor, make_sleep, photo_base64
):
    predictor = make_predictor(statuses=[{"status": "error", "error": "content policy"}])
    app.dependency_overrides[dependencies.get_prediction_client] = lambda: predictor
    app.dependency_overrides[dependencies.get_result_poller] = lambda: ResultPoller(
        predictor.get_status, sleep=make_sleep()
    )

    response = await client.post("/api/v1/jobs", json={"id": "job1", "prompt": "p", "photo": photo_base64})
    assert response.status_code == 502
    data = response.json()
    assert data["error"].startswith("Eachlabs failed")
    assert data["job_id"] == "job1"
    assert data["stage"] == "poll"

    response = await client.get("/api/v1/status", params={"id": "job1"})
    assert response.json() == {"received": False}


@pytest.mark.asyncio
async def test_poll_timeout_is_504(client, make_predictor, make_sleep, photo_base64):
    predictor = make_predictor(statuses=[{"status": "processing"}])
    app.dependency_overrides[dependencies.get_prediction_client] = lambda: predictor
    app.dependency_overrides[dependencies.get_result_poller] = lambda: ResultPoller(
        predictor.get_status, sleep=make_sleep()
    )

    response = await client.post("/api/v1/jobs", json={"id": "job1", "prompt": "p", "photo": photo_base64})
    assert response.status_code == 504
    assert response.json()["details"]["attempts"] == 60
    assert len(predictor.status_calls) == 60


@pytest.mark.asyncio
async def test_status_not_received_while_job_runs(client, predictor, make_sleep, photo_base64):
    release = asyncio.Event()

    async def gated_status(token):
        await release.wait()
        return {"status": "success", "output": ["http://x/final.png"]}

    app.dependency_overrides[dependencies.get_result_poller] = lambda: ResultPoller(
        gated_status, sleep=make_sleep()
    )

    submit = asyncio.create_task(
        client.post("/api/v1/jobs", json={"id": "job1", "prompt": "p", "photo": photo_base64})
    )
    for _ in range(500):
        if predictor.submit_calls:
            break
        await asyncio.sleep(0.01)

    response = await client.get("/api/v1/status", params={"id": "job1"})
    assert response.json() == {"received": False}

    release.set()
    response = await submit
    assert response.status_code == 200

    response = await client.get("/api/v1/status", params={"id": "job1"})
    assert response.json() == {"received": True, "image": "http://x/final.png"}


@pytest.mark.asyncio
async def test_legacy_root_routes(client, photo_base64):
    response = await client.post("/", json={"id": "kiosk-7", "prompt": "p", "photo": photo_base64})
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = await client.get("/status", params={"id": "kiosk-7"})
    assert response.json() == {"received": True, "image": "http://x/final.png"}

    response = await client.get("/status")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_upload_endpoint(client, storage, image_bytes):
    response = await client.post(
        "/api/v1/jobs/upload",
        files={"file": ("photo.png", image_bytes, "image/png")},
        data={"prompt": "make it sunset", "id": "job2"}
    )
    assert response.status_code == 200
    assert response.json()["image"] == "http://x/final.png"
    assert storage.uploads[0]["filename"] == "job2.png"


@pytest.mark.asyncio
async def test_metrics_endpoint(client, photo_base64):
    await client.post("/api/v1/jobs", json={"id": "job1", "prompt": "p", "photo": photo_base64})

    response = await client.get("/api/v1/metrics")
    assert response.status_code == 200
    assert "prediction_polls_total" in response.text
    assert "booth_jobs_total" in response.text
