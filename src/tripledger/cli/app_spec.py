from __future__ import annotations

"""
Wiring tests for the Typer app: options reach the command modules and exit
codes propagate.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from tripledger.cli.app import app
from tripledger.data_root import DataRoot
from tripledger.model.budget import WorkspaceId
from tripledger.storage.ledger_store import LedgerStore

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    result = runner.invoke(app, ["--data-dir", str(tmp_path), "init"])
    assert result.exit_code == 0, result.output
    return tmp_path


def _invoke(data_dir: Path, *args: str, input: str | None = None):
    return runner.invoke(app, ["--data-dir", str(data_dir), "--actor", "Tester", *args], input=input)


def _store(data_dir: Path) -> LedgerStore:
    return LedgerStore(DataRoot(root=data_dir).ledger_db_path)


class DescribeApp:
    def it_should_resolve_the_data_root_from_the_environment(self, tmp_path: Path):
        result = runner.invoke(app, ["init"], env={"TRIPLEDGER_DATA": str(tmp_path)})

        assert result.exit_code == 0
        assert (tmp_path / "data" / "ledger.db").exists()

    def it_should_default_to_the_sandbox_workspace(self, data_dir):
        result = _invoke(data_dir, "set-param", "children_count", "12", "--write")

        assert result.exit_code == 0
        assert _store(data_dir).get_parameters(WorkspaceId.sandbox).children_count == 12
        assert _store(data_dir).get_parameters(WorkspaceId.concrete).children_count is None

    def it_should_record_the_actor_in_the_change_log(self, data_dir):
        _invoke(data_dir, "set-param", "leader_count", "3", "-w", "concrete", "--write")

        [entry] = _store(data_dir).query_changes(field_name="leader_count")
        assert entry.actor == "Tester"
        assert entry.workspace == WorkspaceId.concrete

    def it_should_add_list_and_summarize_items(self, data_dir):
        added = _invoke(
            data_dir, "add-item", "-c", "Lodging", "-s", "Campsite", "--total", "800", "-w", "sandbox2", "--write"
        )
        listed = _invoke(data_dir, "items", "-w", "sandbox2")
        summary = _invoke(data_dir, "summary", "--compare")

        assert added.exit_code == 0
        assert listed.exit_code == 0
        assert [i.subcategory for i in _store(data_dir).list_line_items(WorkspaceId.sandbox2) if not i.auto] == ["Campsite"]
        assert summary.exit_code == 0

    def it_should_reject_an_unknown_workspace(self, data_dir):
        result = _invoke(data_dir, "items", "-w", "production")

        assert result.exit_code != 0

    def it_should_promote_with_confirmation_input(self, data_dir):
        _invoke(data_dir, "add-item", "-c", "Food", "-s", "Snacks", "--total", "50", "--write")

        declined = _invoke(data_dir, "promote", "sandbox", "concrete", "--write", input="n\n")
        accepted = _invoke(data_dir, "promote", "sandbox", "concrete", "--write", input="y\n")

        assert declined.exit_code == 0
        assert accepted.exit_code == 0
        subcategories = [i.subcategory for i in _store(data_dir).list_line_items(WorkspaceId.concrete)]
        assert "Snacks" in subcategories

    def it_should_recover_a_zeroed_distance(self, data_dir):
        _invoke(data_dir, "distance", "--add-day", "180", "--write")
        _invoke(data_dir, "distance", "--set-day", "1", "--distance", "0", "--write")

        result = _invoke(data_dir, "recover", "--write")

        assert result.exit_code == 0
        [day] = _store(data_dir).list_distance_days(WorkspaceId.sandbox)
        assert day.distance == 180

    def it_should_show_history_params_and_recalc(self, data_dir):
        assert _invoke(data_dir, "history", "-n", "5").exit_code == 0
        assert _invoke(data_dir, "history", "-t", "parameters", "-w", "sandbox").exit_code == 0
        assert _invoke(data_dir, "params", "--compare").exit_code == 0
        assert _invoke(data_dir, "recalc").exit_code == 0
        assert _invoke(data_dir, "recalc", "--write").exit_code == 0

    def it_should_save_parameters_to_the_seed_file(self, data_dir):
        _invoke(data_dir, "set-param", "catering_days", "9", "--write")

        result = _invoke(data_dir, "params", "--save")

        assert result.exit_code == 0
        assert "catering_days: 9.0" in (data_dir / "config" / "parameters.yml").read_text(encoding="utf-8")
