"""Integration tests for the phase API endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration


@pytest.fixture
async def project_id(async_client) -> str:
    response = await async_client.post("/projects/", json={"name": "Clinic pilot"})
    return response.json()["id"]


class TestCreatePhase:
    async def test_phase_without_milestones_is_not_recalculated(
        self, async_client, project_id
    ) -> None:
        response = await async_client.post(
            "/phases/", json={"project_id": project_id, "name": "Discovery"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "not_started"
        assert data["progress_percentage"] is None
        assert data["auto_calculated_progress"] is False
        assert data["milestones"] == []

    async def test_phase_with_milestones_is_recalculated(self, async_client, project_id) -> None:
        response = await async_client.post(
            "/phases/",
            json={
                "project_id": project_id,
                "name": "Build",
                "milestones": [
                    {"name": "Schema", "is_completed": True},
                    {"name": "API"},
                    {"name": "UI"},
                ],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["progress_percentage"] == 33.33
        assert data["status"] == "in_progress"
        assert data["auto_calculated_progress"] is True
        assert len(data["milestones"]) == 3

    async def test_unknown_project_is_404(self, async_client) -> None:
        response = await async_client.post(
            "/phases/", json={"project_id": str(uuid4()), "name": "Orphan"}
        )
        assert response.status_code == 404


class TestUpdatePhase:
    async def test_manual_status_is_recorded(self, async_client, project_id) -> None:
        created = (
            await async_client.post("/phases/", json={"project_id": project_id, "name": "Ops"})
        ).json()

        response = await async_client.patch(
            f"/phases/{created['id']}", json={"status": "blocked"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "blocked"
        history = (await async_client.get(f"/phases/{created['id']}/history")).json()
        assert len(history["phase"]) == 1
        row = history["phase"][0]
        assert row["previous_status"] == "not_started"
        assert row["status"] == "blocked"
        assert row["change_reason"] == "manual"

    async def test_manual_progress_clears_auto_flag(self, async_client, project_id) -> None:
        created = (
            await async_client.post(
                "/phases/",
                json={
                    "project_id": project_id,
                    "name": "Build",
                    "milestones": [{"name": "A", "is_completed": True}, {"name": "B"}],
                },
            )
        ).json()
        assert created["auto_calculated_progress"] is True

        response = await async_client.patch(
            f"/phases/{created['id']}", json={"progress_percentage": 80}
        )

        data = response.json()
        assert data["progress_percentage"] == 80.0
        assert data["auto_calculated_progress"] is False
        history = (await async_client.get(f"/phases/{created['id']}/history")).json()
        manual = [r for r in history["phase"] if r["change_reason"] == "manual"]
        assert len(manual) == 1
        assert manual[0]["previous_progress"] == 50.0
        assert manual[0]["progress_percentage"] == 80.0

    async def test_plain_field_update_writes_no_history(self, async_client, project_id) -> None:
        created = (
            await async_client.post("/phases/", json={"project_id": project_id, "name": "Old"})
        ).json()

        response = await async_client.patch(f"/phases/{created['id']}", json={"name": "New"})

        assert response.json()["name"] == "New"
        history = (await async_client.get(f"/phases/{created['id']}/history")).json()
        assert history == {"phase": [], "milestones": []}

    async def test_rejects_out_of_range_progress(self, async_client, project_id) -> None:
        created = (
            await async_client.post("/phases/", json={"project_id": project_id, "name": "X"})
        ).json()

        response = await async_client.patch(
            f"/phases/{created['id']}", json={"progress_percentage": 150}
        )

        assert response.status_code == 422

    async def test_missing_phase_is_404(self, async_client) -> None:
        response = await async_client.patch(f"/phases/{uuid4()}", json={"name": "X"})
        assert response.status_code == 404


class TestRecalculateEndpoint:
    async def test_recalculate_overwrites_manual_progress(self, async_client, project_id) -> None:
        created = (
            await async_client.post(
                "/phases/",
                json={
                    "project_id": project_id,
                    "name": "Build",
                    "milestones": [{"name": "A", "is_completed": True}, {"name": "B"}],
                },
            )
        ).json()
        await async_client.patch(f"/phases/{created['id']}", json={"progress_percentage": 90})

        response = await async_client.post(f"/phases/{created['id']}/recalculate")

        assert response.status_code == 200
        data = response.json()
        assert data["previous_progress"] == 90.0
        assert data["progress"] == 50.0
        assert data["status"] == "in_progress"

    async def test_missing_phase_is_404(self, async_client) -> None:
        missing = uuid4()
        response = await async_client.post(f"/phases/{missing}/recalculate")

        assert response.status_code == 404
        assert response.json() == {"detail": f"Phase {missing} not found"}


class TestPhaseReads:
    async def test_get_phase_with_milestones(self, async_client, project_id) -> None:
        created = (
            await async_client.post(
                "/phases/",
                json={"project_id": project_id, "name": "Read", "milestones": [{"name": "A"}]},
            )
        ).json()

        response = await async_client.get(f"/phases/{created['id']}")

        assert response.status_code == 200
        assert [m["name"] for m in response.json()["milestones"]] == ["A"]

    async def test_history_of_missing_phase_is_404(self, async_client) -> None:
        response = await async_client.get(f"/phases/{uuid4()}/history")
        assert response.status_code == 404
