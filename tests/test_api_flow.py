from __future__ import annotations

from dataclasses import replace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.controllers.doctor_controller import router as doctor_router
from backend.controllers.system_controller import router as system_router
from backend.controllers.token_controller import router as token_router
from backend.repository.data_repository import DataRepository
from backend.services.opd_service import OPDWorkflowService
from backend.services.simulation_service import SimulationService
from backend.utils.config import get_settings


TARGET_DATE = "2026-03-02"


def _build_test_app(tmp_path) -> FastAPI:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "api_flow.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    workflow_service = OPDWorkflowService(repository=repository, settings=settings)

    app = FastAPI()
    app.include_router(system_router)
    app.include_router(doctor_router)
    app.include_router(token_router)
    app.state.workflow_service = workflow_service
    app.state.simulation_service = SimulationService(workflow=workflow_service, settings=settings)
    return app


def _create_doctor(client: TestClient) -> str:
    response = client.post(
        "/api/doctors",
        json={
            "name": "Dr. Flow",
            "start_time": "09:00",
            "end_time": "09:30",
            "slot_duration_minutes": 15,
            "max_patients_per_slot": 1,
        },
    )
    assert response.status_code == 201
    return response.json()["id"]


def _allocate(client: TestClient, doctor_id: str, name: str, **extra):
    payload = {"doctor_id": doctor_id, "date": TARGET_DATE, "patient_name": name}
    payload.update(extra)
    return client.post("/api/tokens/allocate", json=payload)


def test_booking_cancel_and_schedule_flow(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    doctor_id = _create_doctor(client)

    slots = client.get(f"/api/doctors/{doctor_id}/slots", params={"date": TARGET_DATE})
    assert slots.status_code == 200
    assert [slot["start_time"] for slot in slots.json()] == ["09:00", "09:15"]

    first = _allocate(client, doctor_id, "W1", source="WALK_IN")
    second = _allocate(client, doctor_id, "O1", source="ONLINE")
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["priority_score"] == 1
    assert first.json()["status"] == "SCHEDULED"

    full = _allocate(client, doctor_id, "W2", source="WALK_IN")
    assert full.status_code == 409

    emergency = _allocate(client, doctor_id, "E1", emergency=True)
    assert emergency.status_code == 409

    cancelled = client.post(f"/api/tokens/{first.json()['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"

    schedule = client.get(f"/api/doctors/{doctor_id}/schedule", params={"date": TARGET_DATE})
    assert schedule.status_code == 200
    body = schedule.json()
    assert body["doctor"]["id"] == doctor_id
    assert [slot["booked"] for slot in body["schedule"]] == [1, 0]
    assert body["schedule"][0]["tokens"][0]["patient_name"] == "O1"

    again = client.post(f"/api/tokens/{first.json()['id']}/no-show")
    assert again.status_code == 404

    stats = client.get("/api/stats").json()
    assert stats["tokens"] == 2
    assert stats["tokens_by_status"] == {"SCHEDULED": 1, "CANCELLED": 1, "NO_SHOW": 0}


def test_validation_failures_map_to_client_errors(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    doctor_id = _create_doctor(client)

    assert _allocate(client, doctor_id, "X", source="VIP").status_code == 400
    assert _allocate(client, doctor_id, "X").status_code == 400
    assert _allocate(client, "missing", "X", source="ONLINE").status_code == 400
    assert client.post("/api/tokens/missing/cancel").status_code == 404
    assert client.get("/api/doctors/missing/schedule", params={"date": TARGET_DATE}).status_code == 404

    backwards = client.post(
        "/api/doctors",
        json={
            "name": "Dr. Backwards",
            "start_time": "12:00",
            "end_time": "09:00",
            "slot_duration_minutes": 15,
            "max_patients_per_slot": 1,
        },
    )
    assert backwards.status_code == 400


def test_schedule_for_quiet_day_is_empty(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    doctor_id = _create_doctor(client)

    response = client.get(f"/api/doctors/{doctor_id}/schedule", params={"date": TARGET_DATE})

    assert response.status_code == 200
    assert response.json()["schedule"] == []


def test_simulate_day_endpoint_reports_events_and_schedules(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    response = client.post("/api/simulate/day", json={"date": TARGET_DATE})

    assert response.status_code == 200
    body = response.json()
    assert body["date"] == TARGET_DATE
    assert len(body["schedules"]) == 3
    assert {event["type"] for event in body["events"]} >= {"ONLINE_BOOKING", "CANCEL", "NO_SHOW", "EMERGENCY"}
    assert client.get("/api/health").json()["status"] == "ok"


def test_failed_save_answers_500_and_keeps_token_scheduled(tmp_path, monkeypatch):
    client = TestClient(_build_test_app(tmp_path))
    doctor_id = _create_doctor(client)
    token_id = _allocate(client, doctor_id, "W1", source="WALK_IN").json()["id"]

    def failing_save(self, store):
        raise RuntimeError("Store persistence failed: database is locked")

    monkeypatch.setattr(DataRepository, "save_store", failing_save)

    response = client.post(f"/api/tokens/{token_id}/cancel")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to cancel token"
    assert client.get("/api/stats").json()["tokens_by_status"]["SCHEDULED"] == 1


def test_unknown_route_answers_json_404(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}
