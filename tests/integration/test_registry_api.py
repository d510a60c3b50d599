"""Integration tests for elections, candidates and polling stations."""

from datetime import UTC, datetime

import pytest


class TestElections:
    """Test election endpoints."""

    @pytest.mark.asyncio
    async def test_list_elections(self, async_client, observer_headers):
        response = await async_client.get("/elections", headers=observer_headers)

        assert response.status_code == 200
        assert [e["id"] for e in response.json()["data"]] == ["e1", "e2"]

    @pytest.mark.asyncio
    async def test_create_election(self, async_client, super_admin_headers, mock_conn, snapshot_feed):
        mock_conn.fetchrow.return_value = {
            "id": "e3",
            "name": "Municipales 2026",
            "date": datetime(2026, 3, 1, tzinfo=UTC),
        }

        response = await async_client.post(
            "/elections",
            json={"name": "Municipales 2026", "date": "2026-03-01T00:00:00Z"},
            headers=super_admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["id"] == "e3"
        assert snapshot_feed.current is None

    @pytest.mark.asyncio
    async def test_create_election_forbidden(self, async_client, observer_headers):
        response = await async_client.post(
            "/elections",
            json={"name": "Municipales 2026", "date": "2026-03-01T00:00:00Z"},
            headers=observer_headers,
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_election_invalid_body(self, async_client, super_admin_headers):
        response = await async_client.post(
            "/elections", json={"name": ""}, headers=super_admin_headers
        )

        assert response.status_code == 422
        assert response.json()["success"] is False


class TestCandidates:
    """Test candidate endpoints."""

    @pytest.mark.asyncio
    async def test_list_candidates(self, async_client, observer_headers):
        response = await async_client.get("/elections/e1/candidates", headers=observer_headers)

        assert [c["name"] for c in response.json()["data"]] == [
            "Awa Diop",
            "Bakary Sow",
            "Coumba Fall",
        ]

    @pytest.mark.asyncio
    async def test_unknown_election(self, async_client, observer_headers):
        response = await async_client.get("/elections/e9/candidates", headers=observer_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_create_candidate(self, async_client, super_admin_headers, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "c9",
            "election_id": "e2",
            "name": "Fatou Ba",
            "party": "Parti F",
            "photo_url": "",
        }

        response = await async_client.post(
            "/candidates",
            json={"election_id": "e2", "name": "Fatou Ba", "party": "Parti F"},
            headers=super_admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "Fatou Ba"

    @pytest.mark.asyncio
    async def test_create_candidate_unknown_election(self, async_client, super_admin_headers, mock_conn):
        response = await async_client.post(
            "/candidates",
            json={"election_id": "e9", "name": "Fatou Ba"},
            headers=super_admin_headers,
        )

        assert response.status_code == 404
        mock_conn.fetchrow.assert_not_called()


class TestStations:
    """Test polling station endpoints."""

    @pytest.mark.asyncio
    async def test_list_stations(self, async_client, observer_headers):
        response = await async_client.get("/stations", headers=observer_headers)

        assert [s["name"] for s in response.json()["data"]] == ["Lycée Central", "École Nord"]

    @pytest.mark.asyncio
    async def test_create_station(self, async_client, super_admin_headers, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "ps-3",
            "name": "Mairie Sud",
            "city": "Saint-Louis",
            "district": "Sud",
        }

        response = await async_client.post(
            "/stations",
            json={"name": "Mairie Sud", "city": "Saint-Louis", "district": "Sud"},
            headers=super_admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["id"] == "ps-3"

    @pytest.mark.asyncio
    async def test_duplicate_station_name(self, async_client, super_admin_headers, mock_conn):
        response = await async_client.post(
            "/stations",
            json={"name": "Lycée Central", "city": "Dakar", "district": "Plateau"},
            headers=super_admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["errors"] == {"name": "duplicate"}
        mock_conn.fetchrow.assert_not_called()


class TestHealth:
    """Test the health endpoint."""

    @pytest.mark.asyncio
    async def test_health_without_pool(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        checks = response.json()["data"]["checks"]
        assert checks["database"]["status"] == "skipped"
        assert checks["snapshot"] == {"status": "loaded", "version": 1}
