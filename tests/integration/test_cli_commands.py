"""Integration tests for the election, voter and operator CLI commands."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from ballot_api.cli.app import app
from ballot_api.core.errors import UserExists
from ballot_api.lib.phase import ElectionPhase
from ballot_api.schemas.election import CandidateTally, ElectionResultsResponse, PositionTally
from ballot_api.services.phase_service import PhaseChange
from ballot_api.services.voter_service import ImportRowError, ImportSummary

runner = CliRunner()


@pytest.fixture(autouse=True)
def _cli_env(monkeypatch: pytest.MonkeyPatch):
    """Settings the CLI callback loads; logging is left unconfigured."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-not-for-production")
    with patch("ballot_api.cli.app.setup_logging"):
        yield


@pytest.fixture
def db_patches():
    """Replace engine setup and the session scope with mocks."""
    with (
        patch("ballot_api.core.database.init_engine"),
        patch("ballot_api.core.database.dispose_engine", new_callable=AsyncMock),
        patch("ballot_api.core.database.session_scope") as mock_scope,
    ):
        mock_scope.return_value = MagicMock()
        yield mock_scope


class TestSetPhaseCLI:
    """Tests for `election set-phase`."""

    def test_yes_skips_prompt(self) -> None:
        with patch("ballot_api.cli.election_cmd._set_phase_impl", new_callable=AsyncMock) as mock_impl:
            result = runner.invoke(app, ["election", "set-phase", "voting", "--yes"])
        assert result.exit_code == 0
        mock_impl.assert_awaited_once_with(ElectionPhase.VOTING)

    def test_declined_prompt_aborts(self) -> None:
        with patch("ballot_api.cli.election_cmd._set_phase_impl", new_callable=AsyncMock) as mock_impl:
            result = runner.invoke(app, ["election", "set-phase", "ENDED"], input="n\n")
        assert result.exit_code == 1
        assert "Aborted" in result.output
        mock_impl.assert_not_awaited()

    def test_unknown_phase(self) -> None:
        result = runner.invoke(app, ["election", "set-phase", "COUNTING", "--yes"])
        assert result.exit_code != 0

    def test_reports_change(self, db_patches) -> None:
        change = PhaseChange(
            phase=ElectionPhase.VERIFICATION,
            previous_phase=ElectionPhase.SETUP,
            changed=True,
            phase_changed_at=datetime(2026, 3, 1, 8, 0, tzinfo=UTC),
        )
        with patch("ballot_api.services.phase_service.request_phase", new_callable=AsyncMock, return_value=change):
            result = runner.invoke(app, ["election", "set-phase", "verification", "--yes"])
        assert result.exit_code == 0
        assert "SETUP -> VERIFICATION" in result.output


class TestResultsCLI:
    def test_prints_tallies(self, db_patches) -> None:
        tally = ElectionResultsResponse(
            election_title="Annual Delegates Election",
            phase=ElectionPhase.ENDED,
            total_ballots=3,
            positions=[
                PositionTally(
                    position="Chair",
                    candidates=[
                        CandidateTally(candidate_id="a", name="Alice Njeri", party="Umoja", votes=2),
                        CandidateTally(candidate_id="b", name="Brian Mwangi", votes=1),
                    ],
                )
            ],
        )
        with patch("ballot_api.services.election_service.tally_results", new_callable=AsyncMock, return_value=tally):
            result = runner.invoke(app, ["election", "results"])
        assert result.exit_code == 0
        assert "3 ballot(s)" in result.output
        assert "Alice Njeri (Umoja): 2" in result.output
        assert "Brian Mwangi: 1" in result.output


class TestVoterCLI:
    def test_import_missing_file(self, tmp_path) -> None:
        result = runner.invoke(app, ["voters", "import", str(tmp_path / "missing.csv")])
        assert result.exit_code != 0

    def test_import_summary(self, db_patches, tmp_path) -> None:
        csv_file = tmp_path / "registry.csv"
        csv_file.write_text("MembershipID,Name,Phone\nMEM001,Jane,0712345678\n")
        summary = ImportSummary(imported=1, skipped=1, errors=[ImportRowError(3, "MEM001", "Duplicate membership ID")])
        with patch(
            "ballot_api.services.voter_service.bulk_import_voters", new_callable=AsyncMock, return_value=summary
        ) as mock_import:
            result = runner.invoke(app, ["voters", "import", str(csv_file), "--strict"])
        assert result.exit_code == 0
        assert "Imported: 1  Skipped: 1" in result.output
        assert "row 3 (MEM001): Duplicate membership ID" in result.output
        assert mock_import.await_args.kwargs["strict"] is True


class TestUserCLI:
    _ARGS = ["user", "create", "--username", "observer", "--email", "observer@example.org", "--role", "viewer"]

    def test_create(self) -> None:
        with patch("ballot_api.cli.user_cmd._run", new_callable=AsyncMock) as mock_run:
            result = runner.invoke(app, [*self._ARGS, "--password", "longpassword"])
        assert result.exit_code == 0
        mock_run.assert_awaited_once()

    def test_invalid_role_rejected_before_database(self) -> None:
        with patch("ballot_api.cli.user_cmd._run", new_callable=AsyncMock) as mock_run:
            result = runner.invoke(app, [*self._ARGS[:-1], "analyst", "--password", "longpassword"])
        assert result.exit_code == 1
        mock_run.assert_not_awaited()

    def test_existing_user_with_if_not_exists(self) -> None:
        with patch("ballot_api.cli.user_cmd._run", new_callable=AsyncMock, side_effect=UserExists()):
            result = runner.invoke(app, [*self._ARGS, "--password", "longpassword", "--if-not-exists"])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_existing_user_fails(self) -> None:
        with patch("ballot_api.cli.user_cmd._run", new_callable=AsyncMock, side_effect=UserExists()):
            result = runner.invoke(app, [*self._ARGS, "--password", "longpassword"])
        assert result.exit_code == 1

    def test_deactivate_last_admin_fails(self) -> None:
        error = ValueError("Cannot deactivate the last active admin")
        with patch("ballot_api.cli.user_cmd._run", new_callable=AsyncMock, side_effect=error):
            result = runner.invoke(app, ["user", "deactivate", "testadmin"])
        assert result.exit_code == 1
