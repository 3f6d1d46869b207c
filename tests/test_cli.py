"""Tests für die Klassenplan-CLI (main.py) mit click.testing."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.console import Console

from config.defaults import KEY_ATTENDANCE, KEY_SCHEDULE
from config.manager import ENV_REMOTE_URL
import main
from main import cli
from models.schedule_document import ScheduleDocument
from storage.local_store import LocalStore


@pytest.fixture
def runner(tmp_path: Path, monkeypatch) -> CliRunner:
    """CLI in leerem Arbeitsverzeichnis, ohne Remote-Spiegel."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(ENV_REMOTE_URL, raising=False)
    # breite Konsole, damit rich keine Tabellenzellen umbricht
    monkeypatch.setattr(main, "console", Console(width=200))
    return CliRunner()


def _store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "profile")


def _stored_doc(tmp_path: Path) -> ScheduleDocument:
    return ScheduleDocument.model_validate(_store(tmp_path).get(KEY_SCHEDULE))


def _add_subject(runner: CliRunner, tmp_path: Path, name: str = "Mathe") -> str:
    result = runner.invoke(cli, ["subject", "add", name, "--room", "101"])
    assert result.exit_code == 0, result.output
    return next(s.id for s in _stored_doc(tmp_path).subjects if s.name == name)


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    @pytest.mark.parametrize("group", ["subject", "slot", "export", "share", "reminders"])
    def test_groups_registered(self, runner, group):
        assert runner.invoke(cli, [group, "--help"]).exit_code == 0

    @pytest.mark.parametrize("args", [
        ["subject", "list"],
        ["notify", "list"],
        ["notify", "settings"],
        ["reminders", "plan"],
    ])
    def test_app_commands_on_empty_profile(self, runner, args):
        """Befehle mit vollem Anwendungskontext laufen auch ohne Daten."""
        result = runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        assert result.exception is None

    def test_config_show_without_file(self, runner):
        """Ohne Datei laufen Befehle mit Standardwerten."""
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "Stundenplan" in result.output


class TestCliSchedule:
    def test_subject_and_slot(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        result = runner.invoke(cli, ["slot", "add", sid, "monday", "08:00", "08:45"])
        assert result.exit_code == 0, result.output

        doc = _stored_doc(tmp_path)
        assert len(doc.time_slots) == 1
        assert doc.time_slots[0].day == "Monday"

    def test_slot_for_unknown_subject(self, runner):
        result = runner.invoke(cli, ["slot", "add", "gibt-es-nicht", "Monday", "08:00", "08:45"])
        assert result.exit_code == 1
        assert "Fehler" in result.output

    def test_invalid_time_rejected(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        result = runner.invoke(cli, ["slot", "add", sid, "Monday", "10:00", "09:00"])
        assert result.exit_code == 1

    def test_delete_subject_cascades(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        runner.invoke(cli, ["slot", "add", sid, "Tuesday", "08:00", "08:45"])
        runner.invoke(cli, ["assignment", "add", sid, "Referat", "2030-01-10"])
        result = runner.invoke(cli, ["subject", "delete", sid])
        assert result.exit_code == 0, result.output
        doc = _stored_doc(tmp_path)
        assert doc.is_empty

    def test_demo_refuses_overwrite(self, runner, tmp_path):
        assert runner.invoke(cli, ["demo"]).exit_code == 0
        assert _stored_doc(tmp_path).subjects
        assert runner.invoke(cli, ["demo"]).exit_code == 1
        assert runner.invoke(cli, ["demo", "--force"]).exit_code == 0


class TestCliBackup:
    def test_create_and_restore(self, runner, tmp_path):
        _add_subject(runner, tmp_path, "Physik")
        result = runner.invoke(cli, ["backup", "create", "-o", "sicherung.json"])
        assert result.exit_code == 0, result.output
        raw = json.loads((tmp_path / "sicherung.json").read_text(encoding="utf-8"))
        assert raw["version"] == "2.0"
        assert [s["name"] for s in raw["subjects"]] == ["Physik"]

        _add_subject(runner, tmp_path, "Chemie")
        result = runner.invoke(cli, ["backup", "restore", "sicherung.json"])
        assert result.exit_code == 0, result.output
        assert [s.name for s in _stored_doc(tmp_path).subjects] == ["Physik"]

    def test_backup_without_data(self, runner):
        result = runner.invoke(cli, ["backup", "create", "-o", "leer.json"])
        assert result.exit_code == 1
        assert "No data to backup" in result.output

    def test_restore_rejects_incomplete_file(self, runner, tmp_path):
        _add_subject(runner, tmp_path, "Physik")
        (tmp_path / "kaputt.json").write_text('{"subjects": []}', encoding="utf-8")
        result = runner.invoke(cli, ["backup", "restore", "kaputt.json"])
        assert result.exit_code == 1
        assert "Invalid backup file format" in result.output
        assert [s.name for s in _stored_doc(tmp_path).subjects] == ["Physik"]


class TestCliExportAndShare:
    def test_export_ics(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        runner.invoke(cli, ["slot", "add", sid, "Friday", "10:00", "10:45"])
        result = runner.invoke(cli, ["export", "ics"])
        assert result.exit_code == 0, result.output
        ics = (tmp_path / "output" / "class-schedule.ics").read_bytes()
        assert ics.count(b"BEGIN:VEVENT") == 1

    def test_share_text(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        runner.invoke(cli, ["slot", "add", sid, "Monday", "08:00", "08:45"])
        result = runner.invoke(cli, ["share", "text"])
        assert result.exit_code == 0
        assert "📅 My Class Schedule" in result.output
        assert "  • 08:00 - 08:45: Mathe (101)" in result.output

    def test_share_token_import(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        runner.invoke(cli, ["slot", "add", sid, "Monday", "08:00", "08:45"])
        token = runner.invoke(cli, ["share", "text", "--token"]).output.strip()

        result = runner.invoke(cli, ["share", "show", token, "--token", "--import"])
        assert result.exit_code == 0, result.output
        doc = _stored_doc(tmp_path)
        assert [s.name for s in doc.subjects] == ["Mathe", "Mathe"]
        assert len(doc.time_slots) == 2

    def test_publish_falls_back_to_local(self, runner, tmp_path):
        """Ohne Remote-Spiegel wird die Freigabe lokal gespeichert."""
        sid = _add_subject(runner, tmp_path)
        runner.invoke(cli, ["slot", "add", sid, "Monday", "08:00", "08:45"])
        result = runner.invoke(cli, ["share", "publish", "Klasse 7b"])
        assert result.exit_code == 0, result.output
        assert "Geteilt" in result.output


class TestCliRoles:
    def test_teacher_marks_attendance(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        assert runner.invoke(cli, ["role", "set", "teacher", "Frau Kühn"]).exit_code == 0
        result = runner.invoke(cli, ["attendance", "mark", sid, "late", "--date", "2024-09-02"])
        assert result.exit_code == 0, result.output
        records = _store(tmp_path).get(KEY_ATTENDANCE)
        assert len(records) == 1
        assert records[0]["status"] == "late"

    def test_student_may_not_mark(self, runner, tmp_path):
        sid = _add_subject(runner, tmp_path)
        runner.invoke(cli, ["role", "set", "student", "Max"])
        result = runner.invoke(cli, ["attendance", "mark", sid, "present"])
        assert result.exit_code == 1
        assert "Only teachers can mark attendance" in result.output

    def test_role_show(self, runner):
        runner.invoke(cli, ["role", "set", "student", "Max"])
        result = runner.invoke(cli, ["role", "show"])
        assert "student" in result.output
        assert "Max" in result.output


class TestCliNotifications:
    def test_permission_roundtrip(self, runner):
        assert "default" in runner.invoke(cli, ["notify", "permission"]).output
        assert "granted" in runner.invoke(cli, ["notify", "permission", "--grant"]).output
        assert "granted" in runner.invoke(cli, ["notify", "permission"]).output

    def test_settings(self, runner):
        result = runner.invoke(cli, ["notify", "settings", "--disable", "--minutes", "15"])
        assert result.exit_code == 0
        assert "aus" in result.output
        assert "15 min" in result.output

    def test_master_switch_stops_planning(self, runner):
        runner.invoke(cli, ["demo"])
        runner.invoke(cli, ["notify", "permission", "--grant"])
        result = runner.invoke(cli, ["notify", "settings", "--no-notifications"])
        assert "Hinweise: aus" in result.output
        result = runner.invoke(cli, ["reminders", "plan"])
        assert result.exit_code == 0, result.output
        assert "Class Reminder" not in result.output

    def test_reminders_plan_needs_permission(self, runner, tmp_path):
        runner.invoke(cli, ["demo"])
        result = runner.invoke(cli, ["reminders", "plan"])
        assert result.exit_code == 0
        assert "Keine Erlaubnis" in result.output

    def test_reminders_plan(self, runner, tmp_path):
        runner.invoke(cli, ["demo"])
        runner.invoke(cli, ["notify", "permission", "--grant"])
        result = runner.invoke(cli, ["reminders", "plan"])
        assert result.exit_code == 0, result.output
        assert "Class Reminder" in result.output
