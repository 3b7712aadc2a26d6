"""Integration tests for administrator endpoints: auth, registry, election control, audit."""

import csv
import io
from datetime import UTC, datetime

import pytest
from httpx import AsyncClient

from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.voter import VoterStatus

API = "/api/v1"


class TestHealthAndLogin:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_security_headers(self, client: AsyncClient) -> None:
        response = await client.get(f"{API}/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"

    @pytest.mark.asyncio
    async def test_login_and_me(self, client: AsyncClient, sample_user) -> None:
        response = await client.post(
            f"{API}/auth/login", data={"username": "testadmin", "password": "testpassword123"}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "testadmin"
        assert me.json()["role"] == "admin"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient, sample_user) -> None:
        response = await client.post(f"{API}/auth/login", data={"username": "testadmin", "password": "nope"})
        assert response.status_code == 401


class TestRoles:
    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient) -> None:
        assert (await client.get(f"{API}/voters")).status_code == 401

    @pytest.mark.asyncio
    async def test_viewer_reads_but_cannot_write(self, client: AsyncClient, viewer_headers: dict) -> None:
        assert (await client.get(f"{API}/voters", headers=viewer_headers)).status_code == 200
        assert (await client.get(f"{API}/voters/stats", headers=viewer_headers)).status_code == 200
        assert (await client.get(f"{API}/admin/election/results", headers=viewer_headers)).status_code == 200

        response = await client.post(
            f"{API}/admin/election/phase",
            json={"phase": "VERIFICATION", "acknowledged": True},
            headers=viewer_headers,
        )
        assert response.status_code == 403
        response = await client.post(
            f"{API}/voters", json={"membership_id": "MEM9", "name": "X", "phone": "0700000000"}, headers=viewer_headers
        )
        assert response.status_code == 403


class TestRegistryEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_search(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(
            f"{API}/voters",
            json={"membership_id": "MEM010", "name": "Peter Otieno", "phone": "0722000111", "ward": "Kibra"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["status"] == "UNVERIFIED"

        duplicate = await client.post(
            f"{API}/voters",
            json={"membership_id": "mem010", "name": "Someone Else", "phone": "0722000112"},
            headers=admin_headers,
        )
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "duplicate_membership_id"

        found = (await client.get(f"{API}/voters", params={"q": "otieno"}, headers=admin_headers)).json()
        assert found["pagination"]["total"] == 1
        assert found["items"][0]["membership_id"] == "MEM010"

    @pytest.mark.asyncio
    async def test_import_reports_skipped_rows(self, client: AsyncClient, admin_headers: dict) -> None:
        csv_body = (
            "MembershipID,Name,Phone\n"
            "MEM001,Jane Wanjiku,0712345678\n"
            "MEM001,Duplicate Row,0712345679\n"
            ",No Id,0712345670\n"
        )
        response = await client.post(
            f"{API}/voters/import",
            files={"file": ("registry.csv", csv_body.encode(), "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["imported"] == 1
        assert body["skipped"] == 2
        assert {e["row"] for e in body["errors"]} == {3, 4}

    @pytest.mark.asyncio
    async def test_strict_import_rejects_file(self, client: AsyncClient, admin_headers: dict) -> None:
        csv_body = "MembershipID,Name,Phone\nMEM001,Jane,0712345678\nMEM001,Again,0712345679\n"
        response = await client.post(
            f"{API}/voters/import",
            params={"strict": "true"},
            files={"file": ("registry.csv", csv_body.encode(), "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert response.json()["code"] == "import_rejected"
        assert response.json()["errors"][0]["row"] == 3

        listing = (await client.get(f"{API}/voters", headers=admin_headers)).json()
        assert listing["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_export(self, client: AsyncClient, admin_headers: dict, make_voter) -> None:
        await make_voter("MEM002", name="Brian Kamau", phone="+254711000222")
        await make_voter("MEM001")

        response = await client.get(f"{API}/voters/export", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [r["MembershipID"] for r in rows] == ["MEM001", "MEM002"]
        assert rows[1]["Phone"] == "'+254711000222"

    @pytest.mark.asyncio
    async def test_manual_verify_and_reset(self, client: AsyncClient, admin_headers: dict, make_voter) -> None:
        voter = await make_voter("MEM001")

        response = await client.post(
            f"{API}/voters/{voter.id}/verify", json={"voting_location": "Mombasa"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "VERIFIED"
        assert response.json()["voting_location"] == "Mombasa"

        response = await client.post(f"{API}/voters/{voter.id}/reset", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "UNVERIFIED"

    @pytest.mark.asyncio
    async def test_voted_voter_is_locked(self, client: AsyncClient, admin_headers: dict, make_voter) -> None:
        voter = await make_voter(
            "MEM001", status=VoterStatus.VOTED, voting_location="Nairobi", verified_at=datetime.now(UTC)
        )

        response = await client.patch(f"{API}/voters/{voter.id}", json={"name": "Renamed"}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "voter_locked"

        response = await client.delete(f"{API}/voters/{voter.id}", headers=admin_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_outside_allowed_phases(
        self, client: AsyncClient, admin_headers: dict, make_voter, set_phase
    ) -> None:
        voter = await make_voter("MEM001")
        await set_phase(ElectionPhase.VOTING)

        response = await client.delete(f"{API}/voters/{voter.id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "phase_violation"

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, admin_headers: dict, make_voter) -> None:
        voter = await make_voter("MEM001")
        assert (await client.delete(f"{API}/voters/{voter.id}", headers=admin_headers)).status_code == 204
        assert (await client.get(f"{API}/voters/{voter.id}", headers=admin_headers)).status_code == 404


class TestElectionControl:
    @pytest.mark.asyncio
    async def test_phase_change_needs_acknowledgement(self, client: AsyncClient, admin_headers: dict) -> None:
        warning = await client.get(
            f"{API}/admin/election/phase-warning", params={"phase": "VOTING"}, headers=admin_headers
        )
        assert warning.status_code == 200

        response = await client.post(f"{API}/admin/election/phase", json={"phase": "VOTING"}, headers=admin_headers)
        assert response.status_code == 428
        assert response.json()["code"] == "confirmation_required"
        assert response.json()["warning"] == warning.json()["warning"]
        assert (await client.get(f"{API}/election")).json()["phase"] == "SETUP"

        response = await client.post(
            f"{API}/admin/election/phase", json={"phase": "VOTING", "acknowledged": True}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json() == {
            "phase": "VOTING",
            "previous_phase": "SETUP",
            "changed": True,
            "phase_changed_at": response.json()["phase_changed_at"],
        }

    @pytest.mark.asyncio
    async def test_settings_hide_sms_key(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.patch(
            f"{API}/admin/election/settings",
            json={"election_title": "Annual Delegates Election", "sms_api_key": "secret-key"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["election_title"] == "Annual Delegates Election"
        assert body["sms_configured"] is True
        assert "sms_api_key" not in body

    @pytest.mark.asyncio
    async def test_reset_votes(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(f"{API}/admin/election/reset-votes", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"votes_deleted": 0, "voters_reverted": 0}

    @pytest.mark.asyncio
    async def test_factory_reset_requires_confirm(
        self, client: AsyncClient, admin_headers: dict, make_voter, make_candidate
    ) -> None:
        await make_voter("MEM001")
        await make_candidate("Alice Njeri", "Chair")

        response = await client.post(
            f"{API}/admin/election/factory-reset", json={"confirm": False}, headers=admin_headers
        )
        assert response.status_code == 400

        response = await client.post(
            f"{API}/admin/election/factory-reset", json={"confirm": True}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json() == {"votes_deleted": 0, "voters_deleted": 1, "candidates_deleted": 1}

    @pytest.mark.asyncio
    async def test_actions_are_audited(self, client: AsyncClient, admin_headers: dict) -> None:
        await client.post(
            f"{API}/admin/election/phase", json={"phase": "VERIFICATION", "acknowledged": True}, headers=admin_headers
        )

        response = await client.get(
            f"{API}/admin/audit-logs", params={"action": "phase_change"}, headers=admin_headers
        )
        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["username"] == "testadmin"


class TestOperatorAccounts:
    @pytest.mark.asyncio
    async def test_create_list_and_deactivate(self, client: AsyncClient, admin_headers: dict) -> None:
        body = {"username": "observer", "email": "observer@example.org", "password": "longpassword", "role": "viewer"}
        response = await client.post(f"{API}/users", json=body, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["role"] == "viewer"

        duplicate = await client.post(f"{API}/users", json=body, headers=admin_headers)
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "user_exists"

        listing = (await client.get(f"{API}/users", headers=admin_headers)).json()
        assert listing["pagination"]["total"] == 2

        response = await client.post(f"{API}/users/observer/deactivate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        login = await client.post(f"{API}/auth/login", data={"username": "observer", "password": "longpassword"})
        assert login.status_code == 401

    @pytest.mark.asyncio
    async def test_last_admin_stays_active(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(f"{API}/users/testadmin/deactivate", headers=admin_headers)
        assert response.status_code == 400
        assert "last active admin" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_unknown_operator(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(f"{API}/users/nobody/activate", headers=admin_headers)
        assert response.status_code == 404
