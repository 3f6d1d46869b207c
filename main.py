"""Klassenplan — Haupt-CLI.

Verwendung:
  python main.py setup                          Ersteinrichtung (Wizard)
  python main.py config show                    Konfiguration anzeigen
  python main.py demo                           Demo-Stundenplan anlegen
  python main.py role set teacher "Frau Kühn"   Rolle wählen
  python main.py subject add Mathe --room 101   Fach anlegen
  python main.py slot add <fach-id> Monday 09:00 09:45
  python main.py assignment add <fach-id> "Referat" 2024-09-20
  python main.py attendance mark <fach-id> present
  python main.py backup create                  Sicherung als JSON
  python main.py export ics|excel|pdf           Exporte
  python main.py share publish "Klasse 7b"      Öffentlich teilen
  python main.py reminders run                  Erinnerungen im Vordergrund
"""

import asyncio
import functools
import json
import logging
import sys
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from models.errors import ScheduleAppError

console = Console()
logger = logging.getLogger("klassenplan")

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def _setup_logging(level: str) -> None:
    """Leitet das logging-Modul über rich auf die Konsole."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _handle_errors(func):
    """Fachliche Fehler als rote Meldung ausgeben und mit Code 1 beenden."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ScheduleAppError, ValueError, FileNotFoundError) as e:
            console.print(f"[red bold]Fehler:[/red bold] {e}")
            sys.exit(1)
    return wrapper


# ─── Anwendungskontext ────────────────────────────────────────────────────────

class App:
    """Bündelt Konfiguration, lokalen Speicher und Sitzung eines Aufrufs."""

    def __init__(self):
        from config.manager import ConfigManager
        from data.session import SessionManager
        from reminders.notifications import ConsolePlatform, PermissionState
        from storage.local_store import LocalStore

        self.config = ConfigManager().load_or_default()
        self.store = LocalStore(Path(self.config.storage.data_dir),
                                indent=self.config.storage.json_indent)
        self.platform = ConsolePlatform(self.store, console=console)
        self.sessions = SessionManager(self.store)
        self.session = self.sessions.open(
            notifications_granted=self.platform.permission_state() == PermissionState.GRANTED
        )

    @asynccontextmanager
    async def coordinator(self):
        """SyncCoordinator mit (optionalem) HTTP-Spiegel für die Dauer eines Befehls."""
        from storage.remote_mirror import HttpRemoteMirror
        from storage.sync import SyncCoordinator

        remote_cfg = self.config.remote
        remote = None
        if remote_cfg.is_usable:
            remote = HttpRemoteMirror(remote_cfg.base_url,
                                      timeout_seconds=remote_cfg.timeout_seconds,
                                      api_key=remote_cfg.api_key)
        try:
            yield SyncCoordinator(self.store, self.session.device_id,
                                  remote=remote, remote_config=remote_cfg)
        finally:
            if remote is not None:
                await remote.close()

    def load_document(self):
        """Dokument laden (Remote bevorzugt); leeres Dokument, falls keins existiert."""
        from models.schedule_document import ScheduleDocument

        async def _load():
            async with self.coordinator() as coord:
                return await coord.load()

        return asyncio.run(_load()) or ScheduleDocument()

    def load_document_local(self):
        """Nur lokaler Stand, ohne Remote-Aufruf (für laufende Event-Loops)."""
        from storage.sync import SyncCoordinator
        return SyncCoordinator(self.store, self.session.device_id).load_local()

    def save_document(self, doc) -> None:
        async def _save():
            async with self.coordinator() as coord:
                return await coord.save(doc)

        _print_save_result(asyncio.run(_save()))

    def notification_center(self):
        from data.notification_center import NotificationCenter
        return NotificationCenter(self.store, limit=self.config.notifications.in_app_limit)


def _print_save_result(result) -> None:
    from storage.sync import SyncStatus
    if result.status == SyncStatus.REMOTE_DURABLE:
        console.print("[green]✓[/green] Gespeichert (lokal + Remote-Spiegel)")
    elif result.status == SyncStatus.REMOTE_FAILED:
        console.print("[green]✓[/green] Lokal gespeichert "
                      f"[yellow](Remote-Spiegel nicht erreicht: {result.error})[/yellow]")
    else:
        console.print("[green]✓[/green] Lokal gespeichert")


def _require_subject(doc, subject_id: str):
    from models.errors import EntityNotFoundError
    subject = doc.get_subject(subject_id)
    if subject is None:
        raise EntityNotFoundError(f"Fach nicht gefunden: {subject_id}")
    return subject


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Profil mit dem Setup-Wizard anlegen."""
    from config.wizard import run_wizard
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print("Legen Sie jetzt Fächer an oder starten Sie mit "
                      "[bold]python main.py demo[/bold].")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
@_handle_errors
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    app = App()
    cfg = app.config

    console.print(Panel(
        f"[bold]{cfg.profile_name}[/bold]  |  Daten: {cfg.storage.data_dir}",
        title="Profil",
        border_style="cyan",
    ))
    table = Table(title="Einstellungen", box=box.ROUNDED)
    table.add_column("Bereich", style="bold")
    table.add_column("Wert")
    table.add_row("Remote-Spiegel",
                  cfg.remote.base_url if cfg.remote.is_usable else "[dim]aus[/dim]")
    table.add_row("Zeitlimit / Pause",
                  f"{cfg.remote.timeout_seconds}s / {cfg.remote.cooldown_seconds}s "
                  f"nach {cfg.remote.failure_threshold} Fehlern")
    table.add_row("Vorlaufzeit", f"{cfg.reminders.default_lead_minutes} min")
    table.add_row("Änderungsprüfung", f"alle {cfg.reminders.watch_seconds}s")
    table.add_row("Hinweis-Dauer", f"{cfg.notifications.auto_dismiss_seconds}s")
    table.add_row("Log-Level", cfg.logging.level)
    table.add_row("Geräte-ID", app.session.device_id)
    table.add_row("Rolle", f"{app.session.role.value if app.session.role else '-'} "
                           f"({app.session.display_name})")
    console.print(table)


# ─── DEMO ─────────────────────────────────────────────────────────────────────

@click.command("demo")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--force", is_flag=True, default=False,
              help="Vorhandenen Stundenplan überschreiben.")
@_handle_errors
def cmd_demo(seed: int, force: bool):
    """Legt einen Demo-Stundenplan an."""
    from data.demo_data import DemoDataGenerator

    app = App()
    existing = app.load_document()
    if not existing.is_empty and not force:
        console.print("[yellow]Es existiert bereits ein Stundenplan.[/yellow] "
                      "Mit [bold]--force[/bold] überschreiben.")
        sys.exit(1)
    doc = DemoDataGenerator(seed=seed).generate()
    app.save_document(doc)
    console.print(f"[dim]{len(doc.subjects)} Fächer, {len(doc.time_slots)} Slots, "
                  f"{len(doc.assignments)} Aufgaben[/dim]")


# ─── ROLLE ────────────────────────────────────────────────────────────────────

@click.group("role")
def cmd_role():
    """Rolle (Schüler/Lehrkraft) wählen oder wechseln."""


@cmd_role.command("set")
@click.argument("role", type=click.Choice(["student", "teacher"]))
@click.argument("name")
@click.option("--email", default=None)
@_handle_errors
def role_set(role: str, name: str, email: Optional[str]):
    """Setzt Rolle und Nutzer."""
    from config.schema import UserRole
    app = App()
    if app.session.role is not None:
        app.sessions.switch_role(app.session)
    app.sessions.select_role(app.session, UserRole(role), name, email)
    console.print(f"[green]✓[/green] Angemeldet als {role}: {name}")


@cmd_role.command("show")
@_handle_errors
def role_show():
    app = App()
    if app.session.role is None:
        console.print("[dim]Keine Rolle gewählt.[/dim]")
        return
    console.print(f"{app.session.role.value}: [bold]{app.session.display_name}[/bold]")


@cmd_role.command("switch")
@_handle_errors
def role_switch():
    """Beendet die aktuelle Rolle (Schüler werden offline gesetzt)."""
    app = App()
    app.sessions.switch_role(app.session)
    console.print("[green]✓[/green] Rolle zurückgesetzt")


# ─── FÄCHER ───────────────────────────────────────────────────────────────────

@click.group("subject")
def cmd_subject():
    """Fächer verwalten."""


@cmd_subject.command("add")
@click.argument("name")
@click.option("--color", default=None, help='Anzeigefarbe "#RRGGBB".')
@click.option("--instructor", default="")
@click.option("--room", default="")
@_handle_errors
def subject_add(name: str, color: Optional[str], instructor: str, room: str):
    from config.defaults import SUBJECT_COLORS
    app = App()
    doc = app.load_document()
    color = color or SUBJECT_COLORS[len(doc.subjects) % len(SUBJECT_COLORS)]
    subject = doc.add_subject(name, color=color, instructor=instructor, room=room)
    app.save_document(doc)
    console.print(f"Fach angelegt: [bold]{subject.name}[/bold] ({subject.id})")


@cmd_subject.command("list")
@_handle_errors
def subject_list():
    app = App()
    doc = app.load_document()
    if not doc.subjects:
        console.print("[dim]Keine Fächer vorhanden.[/dim]")
        return
    table = Table(title="Fächer", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Lehrkraft")
    table.add_column("Raum")
    table.add_column("Slots", justify="right")
    for s in doc.subjects:
        n_slots = sum(1 for ts in doc.time_slots if ts.subject_id == s.id)
        table.add_row(s.id, f"[{s.color}]■[/] {s.name}", s.instructor, s.room, str(n_slots))
    console.print(table)


@cmd_subject.command("delete")
@click.argument("subject_id")
@_handle_errors
def subject_delete(subject_id: str):
    """Löscht ein Fach samt Zeitslots und Aufgaben."""
    app = App()
    doc = app.load_document()
    subject = doc.delete_subject(subject_id)
    app.save_document(doc)
    console.print(f"Fach gelöscht: [bold]{subject.name}[/bold]")


# ─── ZEITSLOTS ────────────────────────────────────────────────────────────────

@click.group("slot")
def cmd_slot():
    """Zeitslots im Wochenraster verwalten."""


@cmd_slot.command("add")
@click.argument("subject_id")
@click.argument("day")
@click.argument("start")
@click.argument("end")
@_handle_errors
def slot_add(subject_id: str, day: str, start: str, end: str):
    app = App()
    doc = app.load_document()
    slot = doc.add_time_slot(subject_id, day, start, end)
    app.save_document(doc)
    console.print(f"Slot angelegt: {slot} {doc.subject_name(subject_id)} ({slot.id})")


@cmd_slot.command("list")
@click.option("--day", default=None, help="Nur diesen Wochentag anzeigen.")
@_handle_errors
def slot_list(day: Optional[str]):
    from config.defaults import WEEKDAYS
    app = App()
    doc = app.load_document()
    days = [day.capitalize()] if day else WEEKDAYS
    table = Table(title="Wochenraster", box=box.ROUNDED)
    table.add_column("Tag")
    table.add_column("Zeit")
    table.add_column("Fach", style="bold")
    table.add_column("Raum")
    table.add_column("ID", style="dim")
    for d in days:
        for ts in doc.slots_for_day(d):
            subject = doc.get_subject(ts.subject_id)
            table.add_row(d, f"{ts.start_time}–{ts.end_time}",
                          doc.subject_name(ts.subject_id),
                          subject.room if subject else "", ts.id)
    console.print(table)


@cmd_slot.command("delete")
@click.argument("slot_id")
@_handle_errors
def slot_delete(slot_id: str):
    app = App()
    doc = app.load_document()
    slot = doc.delete_time_slot(slot_id)
    app.save_document(doc)
    console.print(f"Slot gelöscht: {slot}")


# ─── AUFGABEN ─────────────────────────────────────────────────────────────────

@click.group("assignment")
def cmd_assignment():
    """Aufgaben, Hausaufgaben und Prüfungen."""


@cmd_assignment.command("add")
@click.argument("subject_id")
@click.argument("title")
@click.argument("due", type=DATE_TYPE)
@click.option("--type", "kind", type=click.Choice(["assignment", "homework", "exam"]),
              default="assignment")
@click.option("--description", default="")
@_handle_errors
def assignment_add(subject_id: str, title: str, due: datetime, kind: str, description: str):
    from models.assignment import AssignmentType
    app = App()
    doc = app.load_document()
    a = doc.add_assignment(subject_id, title, due.date(), AssignmentType(kind), description)
    app.save_document(doc)
    console.print(f"Aufgabe angelegt: [bold]{a.title}[/bold] "
                  f"({a.due_label(date.today())}, {a.id})")


@cmd_assignment.command("list")
@click.option("--all", "show_all", is_flag=True, default=False,
              help="Auch erledigte und vergangene Aufgaben zeigen.")
@_handle_errors
def assignment_list(show_all: bool):
    app = App()
    doc = app.load_document()
    today = date.today()
    items = doc.sorted_assignments() if show_all else doc.upcoming_assignments(today, limit=50)
    if not items:
        console.print("[dim]Keine offenen Aufgaben.[/dim]")
        return
    table = Table(title="Aufgaben", box=box.ROUNDED)
    table.add_column("Fällig")
    table.add_column("Fach")
    table.add_column("Titel", style="bold")
    table.add_column("Typ")
    table.add_column("Status")
    table.add_column("ID", style="dim")
    for a in items:
        if a.completed:
            status = "[green]erledigt[/green]"
        elif a.days_until_due(today) < 0:
            status = f"[red]{a.due_label(today)}[/red]"
        else:
            status = a.due_label(today)
        table.add_row(a.due_date.isoformat(), doc.subject_name(a.subject_id),
                      a.title, a.type.value, status, a.id)
    console.print(table)


@cmd_assignment.command("done")
@click.argument("assignment_id")
@click.option("--undo", is_flag=True, default=False, help="Wieder als offen markieren.")
@_handle_errors
def assignment_done(assignment_id: str, undo: bool):
    app = App()
    doc = app.load_document()
    a = doc.set_completed(assignment_id, not undo)
    app.save_document(doc)
    console.print(f"{a.title}: {'offen' if undo else 'erledigt'}")


@cmd_assignment.command("delete")
@click.argument("assignment_id")
@_handle_errors
def assignment_delete(assignment_id: str):
    app = App()
    doc = app.load_document()
    a = doc.delete_assignment(assignment_id)
    app.save_document(doc)
    console.print(f"Aufgabe gelöscht: {a.title}")


# ─── ANWESENHEIT ──────────────────────────────────────────────────────────────

@click.group("attendance")
def cmd_attendance():
    """Anwesenheit erfassen und auswerten."""


@cmd_attendance.command("mark")
@click.argument("subject_id")
@click.argument("status", type=click.Choice(["present", "absent", "late"]))
@click.option("--date", "on", type=DATE_TYPE, default=None, help="Standard: heute.")
@click.option("--notes", default=None)
@_handle_errors
def attendance_mark(subject_id: str, status: str, on: Optional[datetime], notes: Optional[str]):
    """Erfasst die Anwesenheit eines Fachs (nur Lehrkräfte)."""
    from data.attendance import AttendanceBook
    from models.attendance import AttendanceStatus
    app = App()
    subject = _require_subject(app.load_document(), subject_id)
    day = on.date() if on else date.today()
    AttendanceBook(app.store, app.session).mark(subject_id, AttendanceStatus(status), day, notes)
    console.print(f"[green]✓[/green] {subject.name} am {day}: {status}")


@cmd_attendance.command("class")
@click.argument("slot_id")
@click.argument("student_id")
@click.argument("status", type=click.Choice(["present", "absent"]))
@click.option("--date", "on", type=DATE_TYPE, default=None, help="Standard: heute.")
@_handle_errors
def attendance_class(slot_id: str, student_id: str, status: str, on: Optional[datetime]):
    """Erfasst einen Schüler in einem Zeitslot."""
    from data.attendance import AttendanceBook
    from models.attendance import AttendanceStatus
    from models.errors import PermissionDeniedError
    app = App()
    if not app.session.is_teacher:
        raise PermissionDeniedError("Only teachers can mark attendance")
    day = on.date() if on else date.today()
    AttendanceBook(app.store, app.session).mark_class(slot_id, student_id,
                                                      AttendanceStatus(status), day)
    console.print(f"[green]✓[/green] {student_id} am {day}: {status}")


@cmd_attendance.command("stats")
@_handle_errors
def attendance_stats():
    from data.attendance import AttendanceBook
    app = App()
    doc = app.load_document()
    book = AttendanceBook(app.store, app.session)

    table = Table(title="Anwesenheit", box=box.ROUNDED)
    table.add_column("Fach", style="bold")
    table.add_column("Gesamt", justify="right")
    table.add_column("Anwesend", justify="right")
    table.add_column("Verspätet", justify="right")
    table.add_column("Abwesend", justify="right")
    table.add_column("Quote", justify="right")
    for s in doc.subjects:
        st = book.stats(s.id, doc)
        table.add_row(s.name, str(st.total), str(st.present), str(st.late),
                      str(st.absent), f"{st.percentage}%")
    overall = book.overall()
    table.add_row("[bold]Gesamt[/bold]", str(overall.total), str(overall.present),
                  str(overall.late), str(overall.absent), f"[bold]{overall.percentage}%[/bold]")
    console.print(table)


# ─── SICHERUNG ────────────────────────────────────────────────────────────────

@click.group("backup")
def cmd_backup():
    """Sicherung erstellen und wiederherstellen."""


@cmd_backup.command("create")
@click.option("--output", "-o", default=None, help="Zieldatei (Standard: mit Datum).")
@_handle_errors
def backup_create(output: Optional[str]):
    from storage.backup import backup_filename, write_backup
    app = App()

    async def _run():
        async with app.coordinator() as coord:
            doc = await coord.load()
            path = write_backup(doc, Path(output or backup_filename()))
            await coord.track_usage("backup_created")
            return path

    path = asyncio.run(_run())
    console.print(f"[green]✓[/green] Sicherung gespeichert: {path}")


@cmd_backup.command("restore")
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
@_handle_errors
def backup_restore(datei: Path):
    """Ersetzt den Stundenplan durch den Inhalt einer Sicherung."""
    from models.errors import BackupError
    from storage.backup import restore_from_backup
    app = App()
    try:
        with open(datei, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise BackupError(f"Sicherung ist kein gültiges JSON: {e}") from e

    async def _run():
        async with app.coordinator() as coord:
            doc, result = await restore_from_backup(coord, raw)
            await coord.track_usage("backup_restored")
            return doc, result

    doc, result = asyncio.run(_run())
    _print_save_result(result)
    console.print(f"Wiederhergestellt: {len(doc.subjects)} Fächer, "
                  f"{len(doc.time_slots)} Slots, {len(doc.assignments)} Aufgaben")


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.group("export")
def cmd_export():
    """Stundenplan als Kalender, Excel oder PDF exportieren."""


@cmd_export.command("ics")
@click.option("--output", "-o", default="output/class-schedule.ics")
@_handle_errors
def export_ics_cmd(output: str):
    from export.ics_export import export_ics
    app = App()
    path = export_ics(app.load_document(), Path(output))
    console.print(f"[green]✓[/green] Kalender gespeichert: {path}")


@cmd_export.command("excel")
@click.option("--output", "-o", default="output/stundenplan.xlsx")
@click.option("--with-attendance", is_flag=True, default=False,
              help="Anwesenheitsblatt hinzufügen.")
@_handle_errors
def export_excel_cmd(output: str, with_attendance: bool):
    from data.attendance import AttendanceBook
    from export.excel_export import ExcelExporter
    app = App()
    records = AttendanceBook(app.store, app.session).records() if with_attendance else None
    path = ExcelExporter(app.load_document(), app.config.profile_name,
                         attendance=records).export(Path(output))
    console.print(f"[green]✓[/green] Excel gespeichert: {path}")


@cmd_export.command("pdf")
@click.option("--output", "-o", default="output/stundenplan.pdf")
@_handle_errors
def export_pdf_cmd(output: str):
    from export.pdf_export import PdfExporter
    app = App()
    path = PdfExporter(app.load_document(), app.config.profile_name).export(Path(output))
    console.print(f"[green]✓[/green] PDF gespeichert: {path}")


# ─── TEILEN ───────────────────────────────────────────────────────────────────

@click.group("share")
def cmd_share():
    """Stundenplan teilen."""


@cmd_share.command("text")
@click.option("--token", is_flag=True, default=False,
              help="Kompakten Teilen-Token statt Klartext ausgeben.")
@_handle_errors
def share_text(token: bool):
    from export.text_export import encode_share_token, schedule_text
    app = App()
    doc = app.load_document()
    click.echo(encode_share_token(doc) if token else schedule_text(doc))


@cmd_share.command("publish")
@click.argument("title")
@_handle_errors
def share_publish(title: str):
    from storage.sharing import ShareService
    app = App()
    doc = app.load_document()

    async def _run():
        async with app.coordinator() as coord:
            return await ShareService(coord).publish(title, doc)

    share_id = asyncio.run(_run())
    console.print(f"[green]✓[/green] Geteilt: [bold]{share_id}[/bold] (30 Tage gültig)")


def _print_shared(subjects, slots, title: str) -> None:
    from models.schedule_document import ScheduleDocument
    from export.text_export import schedule_text
    preview = ScheduleDocument(subjects=subjects, time_slots=slots)
    console.print(Panel(schedule_text(preview), title=title, border_style="cyan"))


@cmd_share.command("show")
@click.argument("share_id")
@click.option("--token", "is_token", is_flag=True, default=False,
              help="SHARE_ID ist ein Teilen-Token (share text --token).")
@click.option("--import", "do_import", is_flag=True, default=False,
              help="In den eigenen Stundenplan übernehmen.")
@_handle_errors
def share_show(share_id: str, is_token: bool, do_import: bool):
    from export.text_export import decode_share_token
    from storage.sharing import ShareService
    app = App()

    if is_token:
        subjects, slots = decode_share_token(share_id)
        title = "Geteilter Stundenplan"
    else:
        async def _run():
            async with app.coordinator() as coord:
                return await ShareService(coord).fetch(share_id)

        share = asyncio.run(_run())
        if share is None:
            console.print("[yellow]Freigabe nicht gefunden oder abgelaufen.[/yellow]")
            sys.exit(1)
        subjects, slots = share.subjects, share.time_slots
        title = f"{share.title} ({share.views} Aufrufe)"

    _print_shared(subjects, slots, title)
    if do_import:
        doc = app.load_document()
        n_subjects, n_slots = doc.import_shared(subjects, slots)
        app.save_document(doc)
        console.print(f"Importiert: {n_subjects} Fächer, {n_slots} Slots")


@cmd_share.command("gallery")
@click.option("--limit", default=10, show_default=True)
@_handle_errors
def share_gallery(limit: int):
    from storage.sharing import ShareService
    app = App()

    async def _run():
        async with app.coordinator() as coord:
            return await ShareService(coord).gallery(limit)

    shares = asyncio.run(_run())
    if not shares:
        console.print("[dim]Keine öffentlichen Stundenpläne.[/dim]")
        return
    table = Table(title="Öffentliche Stundenpläne", box=box.ROUNDED)
    table.add_column("Titel", style="bold")
    table.add_column("Fächer", justify="right")
    table.add_column("Aufrufe", justify="right")
    table.add_column("Erstellt")
    table.add_column("ID", style="dim")
    for s in shares:
        table.add_row(s.title, str(len(s.subjects)), str(s.views),
                      s.created_at.strftime("%d.%m.%Y"), s.id)
    console.print(table)


# ─── BENACHRICHTIGUNGEN ───────────────────────────────────────────────────────

@click.group("notify")
def cmd_notify():
    """In-App-Hinweise und Erlaubnis für Konsolen-Hinweise."""


@cmd_notify.command("list")
@click.option("--unread", is_flag=True, default=False)
@_handle_errors
def notify_list(unread: bool):
    from data.notification_center import badge_label
    app = App()
    center = app.notification_center()
    items = [n for n in center.list() if not (unread and n.read)]
    label = badge_label(center.unread_count())
    table = Table(title=f"Hinweise{f' ({label} ungelesen)' if label else ''}", box=box.ROUNDED)
    table.add_column("", width=1)
    table.add_column("Zeit")
    table.add_column("Titel", style="bold")
    table.add_column("Nachricht")
    table.add_column("ID", style="dim")
    for n in items:
        table.add_row("" if n.read else "[blue]●[/blue]",
                      n.timestamp.strftime("%d.%m. %H:%M"), n.title, n.message, n.id)
    console.print(table)


@cmd_notify.command("read")
@click.argument("notification_id", required=False)
@click.option("--all", "read_all", is_flag=True, default=False)
@_handle_errors
def notify_read(notification_id: Optional[str], read_all: bool):
    app = App()
    center = app.notification_center()
    if read_all:
        console.print(f"{center.mark_all_read()} Hinweise als gelesen markiert")
    elif notification_id:
        center.mark_read(notification_id)
        console.print("[green]✓[/green] Gelesen")
    else:
        raise click.UsageError("ID oder --all angeben.")


@cmd_notify.command("clear")
@_handle_errors
def notify_clear():
    App().notification_center().clear()
    console.print("[green]✓[/green] Alle Hinweise gelöscht")


@cmd_notify.command("permission")
@click.option("--grant", "state", flag_value="granted")
@click.option("--deny", "state", flag_value="denied")
@click.option("--reset", "state", flag_value="default")
@_handle_errors
def notify_permission(state: Optional[str]):
    """Zeigt oder setzt die Erlaubnis für Konsolen-Hinweise."""
    from reminders.notifications import PermissionState
    app = App()
    if state:
        app.platform.set_permission(PermissionState(state))
    console.print(f"Erlaubnis: [bold]{app.platform.permission_state().value}[/bold]")


@cmd_notify.command("settings")
@click.option("--notifications/--no-notifications", "master", default=None,
              help="Alle geplanten Hinweise an/aus.")
@click.option("--enable/--disable", "enabled", default=None,
              help="Unterrichts-Erinnerungen an/aus.")
@click.option("--minutes", type=int, default=None, help="Vorlaufzeit in Minuten.")
@_handle_errors
def notify_settings(master: Optional[bool], enabled: Optional[bool], minutes: Optional[int]):
    app = App()
    center = app.notification_center()
    settings = center.settings()
    changes = {}
    if master is not None:
        changes["notifications_enabled"] = master
    if enabled is not None:
        changes["class_reminders_enabled"] = enabled
    if minutes is not None:
        changes["reminder_minutes"] = minutes
    if changes:
        settings = settings.model_validate({**settings.model_dump(), **changes})
        center.save_settings(settings)
    console.print(f"Hinweise: {'an' if settings.notifications_enabled else 'aus'} | "
                  f"Erinnerungen: {'an' if settings.class_reminders_enabled else 'aus'} | "
                  f"Vorlauf: {settings.reminder_minutes} min")


# ─── ERINNERUNGEN ─────────────────────────────────────────────────────────────

def _build_reminders(app: App, scheduler, doc_provider):
    from reminders.notifications import NotificationGateway
    from reminders.scheduler import ReminderScheduler

    center = app.notification_center()
    gateway = NotificationGateway(app.platform, scheduler, center,
                                  auto_dismiss_seconds=app.config.notifications.auto_dismiss_seconds)
    reminders = ReminderScheduler(gateway, scheduler, doc_provider,
                                  settings_provider=center.settings,
                                  default_lead_minutes=app.config.reminders.default_lead_minutes)
    return gateway, reminders


@click.group("reminders")
def cmd_reminders():
    """Unterrichts-Erinnerungen planen und ausführen."""


@cmd_reminders.command("plan")
@_handle_errors
def reminders_plan():
    """Zeigt, welche Erinnerungen ab jetzt geplant würden."""
    from reminders.clock import VirtualScheduler
    app = App()
    doc = app.load_document()
    gateway, reminders = _build_reminders(app, VirtualScheduler(datetime.now()), lambda: doc)
    if not gateway.granted:
        console.print("[yellow]Keine Erlaubnis für Hinweise.[/yellow] "
                      "Mit [bold]notify permission --grant[/bold] erteilen.")
        return
    armed = reminders.replan()
    table = Table(title=f"Geplante Erinnerungen ({len(armed)})", box=box.ROUNDED)
    table.add_column("Zeitpunkt")
    table.add_column("Titel", style="bold")
    table.add_column("Nachricht")
    for n in reminders.pending():
        table.add_row(n.scheduled_time.strftime("%a %d.%m. %H:%M"), n.title, n.message)
    console.print(table)


@cmd_reminders.command("run")
@click.option("--yes", "-y", is_flag=True, default=False,
              help="Erlaubnis ohne Rückfrage erteilen.")
@click.option("--duration", type=float, default=None,
              help="Nach n Sekunden beenden (Standard: bis Strg+C).")
@_handle_errors
def reminders_run(yes: bool, duration: Optional[float]):
    """Läuft im Vordergrund und zeigt Erinnerungen vor Unterrichtsbeginn."""
    from config.defaults import KEY_SCHEDULE
    from reminders.clock import AsyncioScheduler
    from reminders.notifications import PermissionState
    app = App()
    if yes:
        app.platform.set_permission(PermissionState.GRANTED)

    async def _run():
        scheduler = AsyncioScheduler()
        gateway, reminders = _build_reminders(app, scheduler, app.load_document_local)
        if not gateway.request_permission():
            console.print("[yellow]Ohne Erlaubnis landen Hinweise nur in der In-App-Liste.[/yellow]")
        armed = reminders.replan()
        if app.config.reminders.daily_replan:
            reminders.start_daily_replan()
        reminders.watch_document(lambda: app.store.get(KEY_SCHEDULE),
                                 timedelta(seconds=app.config.reminders.watch_seconds))
        console.print(f"[bold]{len(armed)} Erinnerungen geplant.[/bold] "
                      "[dim]Beenden mit Strg+C.[/dim]")
        try:
            if duration is not None:
                await asyncio.sleep(duration)
            else:
                await asyncio.Event().wait()
        finally:
            reminders.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Beendet.[/yellow]")


# ─── KALENDER ─────────────────────────────────────────────────────────────────

@click.group("calendar")
def cmd_calendar():
    """Schuljahreskalender (Feiertage und eigene Termine)."""


@cmd_calendar.command("add")
@click.argument("title")
@click.argument("on", type=DATE_TYPE)
@click.option("--type", "kind",
              type=click.Choice(["holiday", "exam", "event", "deadline", "break"]),
              default="event")
@click.option("--description", default="")
@_handle_errors
def calendar_add(title: str, on: datetime, kind: str, description: str):
    from data.academic_calendar import AcademicCalendar
    from models.calendar_event import CalendarEventType
    app = App()
    event = AcademicCalendar(app.store).add(title, on.date(), CalendarEventType(kind), description)
    console.print(f"Termin angelegt: [bold]{event.title}[/bold] am {event.date} ({event.id})")


@cmd_calendar.command("list")
@click.option("--month", default=None, help="Monat im Format YYYY-MM.")
@click.option("--limit", default=10, show_default=True, help="Anzahl kommender Termine.")
@_handle_errors
def calendar_list(month: Optional[str], limit: int):
    from data.academic_calendar import AcademicCalendar
    app = App()
    cal = AcademicCalendar(app.store)
    if month:
        year, mon = (int(p) for p in month.split("-"))
        events = cal.events_in_month(year, mon)
        title = f"Termine {month}"
    else:
        events = cal.upcoming(date.today(), limit=limit)
        title = "Kommende Termine"
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Datum")
    table.add_column("Titel", style="bold")
    table.add_column("Typ")
    table.add_column("ID", style="dim")
    for e in events:
        table.add_row(e.date.isoformat(), e.title, e.type.value, e.id)
    console.print(table)


@cmd_calendar.command("delete")
@click.argument("event_id")
@_handle_errors
def calendar_delete(event_id: str):
    from data.academic_calendar import AcademicCalendar
    AcademicCalendar(App().store).delete(event_id)
    console.print("[green]✓[/green] Termin gelöscht")


# ─── DOKUMENTE ────────────────────────────────────────────────────────────────

@click.group("docs")
def cmd_docs():
    """PDF-Dokumente zu Fächern."""


@cmd_docs.command("add")
@click.argument("datei", type=click.Path(path_type=Path))
@click.argument("title")
@click.argument("subject_id")
@click.option("--category",
              type=click.Choice(["notes", "assignment", "reference", "syllabus"]),
              default="notes")
@click.option("--description", default="")
@_handle_errors
def docs_add(datei: Path, title: str, subject_id: str, category: str, description: str):
    from data.documents import DocumentLibrary
    from models.document import DocumentCategory
    app = App()
    _require_subject(app.load_document(), subject_id)
    doc = DocumentLibrary(app.store, app.session).upload_file(
        datei, title, subject_id, DocumentCategory(category), description)
    console.print(f"Dokument hochgeladen: [bold]{doc.title}[/bold] ({doc.size_label}, {doc.id})")


@cmd_docs.command("list")
@click.option("--search", "term", default="")
@click.option("--subject", "subject_id", default=None)
@click.option("--category", default=None,
              type=click.Choice(["notes", "assignment", "reference", "syllabus"]))
@_handle_errors
def docs_list(term: str, subject_id: Optional[str], category: Optional[str]):
    from data.documents import DocumentLibrary
    from models.document import DocumentCategory
    app = App()
    doc = app.load_document()
    found = DocumentLibrary(app.store, app.session).search(
        term, subject_id, DocumentCategory(category) if category else None)
    table = Table(title=f"Dokumente ({len(found)})", box=box.ROUNDED)
    table.add_column("Titel", style="bold")
    table.add_column("Fach")
    table.add_column("Kategorie")
    table.add_column("Datei")
    table.add_column("Größe", justify="right")
    table.add_column("ID", style="dim")
    for d in found:
        table.add_row(d.title, doc.subject_name(d.subject_id), d.category.value,
                      d.file_name, d.size_label, d.id)
    console.print(table)


@cmd_docs.command("delete")
@click.argument("document_id")
@_handle_errors
def docs_delete(document_id: str):
    from data.documents import DocumentLibrary
    app = App()
    DocumentLibrary(app.store, app.session).delete(document_id)
    console.print("[green]✓[/green] Dokument gelöscht")


# ─── SCHÜLER ──────────────────────────────────────────────────────────────────

@click.group("students")
def cmd_students():
    """Angemeldete Schüler."""


@cmd_students.command("login")
@click.argument("name")
@click.option("--email", default=None)
@_handle_errors
def students_login(name: str, email: Optional[str]):
    """Meldet einen Schüler an (setzt die Rolle "student")."""
    from config.schema import UserRole
    app = App()
    if app.session.role is not None:
        app.sessions.switch_role(app.session)
    app.sessions.select_role(app.session, UserRole.STUDENT, name, email)
    console.print(f"[green]✓[/green] {name} ist online ({app.session.user.id})")


@cmd_students.command("logout")
@_handle_errors
def students_logout():
    app = App()
    if not app.session.is_student:
        console.print("[yellow]Kein Schüler angemeldet.[/yellow]")
        return
    name = app.session.display_name
    app.sessions.switch_role(app.session)
    console.print(f"[green]✓[/green] {name} ist offline")


@cmd_students.command("list")
@_handle_errors
def students_list():
    from data.students import StudentRoster
    roster = StudentRoster(App().store)
    students = roster.students()
    table = Table(title=f"Schüler ({roster.online_count()} online)", box=box.ROUNDED)
    table.add_column("", width=1)
    table.add_column("Name", style="bold")
    table.add_column("E-Mail")
    table.add_column("Letzte Anmeldung")
    table.add_column("ID", style="dim")
    for s in sorted(students, key=lambda s: (not s.is_online, s.name)):
        table.add_row("[green]●[/green]" if s.is_online else "[dim]○[/dim]",
                      s.name, s.email or "", s.login_time.strftime("%d.%m. %H:%M"), s.id)
    console.print(table)


# ─── ÜBUNGSTESTS ──────────────────────────────────────────────────────────────

@click.group("tests")
def cmd_tests():
    """Übungstests anlegen, bearbeiten und auswerten."""


@cmd_tests.command("create")
@click.argument("title")
@click.argument("subject_id")
@click.argument("fragen", type=click.Path(exists=True, path_type=Path))
@click.option("--time-limit", default=30, show_default=True, help="Minuten.")
@click.option("--description", default="")
@_handle_errors
def tests_create(title: str, subject_id: str, fragen: Path, time_limit: int, description: str):
    """Legt einen Test an. FRAGEN ist eine YAML-Datei:

    \b
    - question: "2 + 2 = ?"
      options: ["3", "4", "5", "22"]
      answer: 1
      explanation: "Grundrechnen"
    """
    from ruamel.yaml import YAML
    from data.practice_tests import PracticeTestService, make_question
    app = App()
    _require_subject(app.load_document(), subject_id)
    with open(fragen, "r", encoding="utf-8") as f:
        raw = YAML(typ="safe").load(f) or []
    questions = [
        make_question(str(q.get("question", "")), [str(o) for o in q.get("options", [])],
                      int(q.get("answer", 0)), q.get("explanation"))
        for q in raw
    ]
    test = PracticeTestService(app.store, app.session).create(
        title, subject_id, questions, description=description, time_limit=time_limit)
    console.print(f"Test angelegt: [bold]{test.title}[/bold] "
                  f"({len(test.questions)} Fragen, {test.id})")


@cmd_tests.command("list")
@_handle_errors
def tests_list():
    from data.practice_tests import PracticeTestService, average_percentage
    app = App()
    doc = app.load_document()
    service = PracticeTestService(app.store, app.session)
    table = Table(title="Übungstests", box=box.ROUNDED)
    table.add_column("Titel", style="bold")
    table.add_column("Fach")
    table.add_column("Fragen", justify="right")
    table.add_column("Zeit", justify="right")
    table.add_column("Ø", justify="right")
    table.add_column("ID", style="dim")
    for t in service.tests():
        avg = average_percentage(service.results_for(t.id))
        table.add_row(t.title, doc.subject_name(t.subject_id), str(len(t.questions)),
                      f"{t.time_limit} min", f"{avg}%", t.id)
    console.print(table)


@cmd_tests.command("submit")
@click.argument("test_id")
@click.argument("answers", nargs=-1, type=int)
@click.option("--time-spent", default=0, help="Benötigte Zeit in Sekunden.")
@_handle_errors
def tests_submit(test_id: str, answers: tuple[int, ...], time_spent: int):
    """Gibt Antworten ab (Index der gewählten Option je Frage, -1 = keine)."""
    from data.practice_tests import PracticeTestService
    app = App()
    result = PracticeTestService(app.store, app.session).submit(test_id, list(answers), time_spent)
    console.print(f"[bold]Ergebnis:[/bold] {result.score}/{result.total_questions} "
                  f"({result.percentage}%)")


@cmd_tests.command("results")
@click.argument("test_id", required=False)
@_handle_errors
def tests_results(test_id: Optional[str]):
    """Ergebnisse eines Tests (ohne ID: eigene Ergebnisse)."""
    from data.practice_tests import PracticeTestService
    app = App()
    service = PracticeTestService(app.store, app.session)
    results = service.results_for(test_id) if test_id else service.my_results()
    table = Table(title="Ergebnisse", box=box.ROUNDED)
    table.add_column("Schüler", style="bold")
    table.add_column("Punkte", justify="right")
    table.add_column("Quote", justify="right")
    table.add_column("Zeit", justify="right")
    table.add_column("Abgegeben")
    for r in results:
        table.add_row(r.student_name, f"{r.score}/{r.total_questions}", f"{r.percentage}%",
                      f"{r.time_spent // 60}:{r.time_spent % 60:02d}",
                      r.completed_at.strftime("%d.%m. %H:%M"))
    console.print(table)


@cmd_tests.command("delete")
@click.argument("test_id")
@_handle_errors
def tests_delete(test_id: str):
    app = App()
    from data.practice_tests import PracticeTestService
    PracticeTestService(app.store, app.session).delete(test_id)
    console.print("[green]✓[/green] Test gelöscht")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Ausführliche Protokollierung.")
def cli(verbose: bool):
    """Klassenplan: Stundenplan, Aufgaben und Erinnerungen (lokal-first).

    Starten Sie mit: python main.py setup
    """
    from config.manager import ConfigManager
    try:
        level = ConfigManager().load_or_default().logging.level
    except ValueError as e:
        console.print(f"[red bold]Fehler:[/red bold] {e}")
        sys.exit(1)
    _setup_logging("DEBUG" if verbose else level)


def main():
    """Einstiegspunkt. Startet automatisch den Wizard beim ersten Aufruf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei Klassenplan![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Der Setup-Wizard wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_demo)
cli.add_command(cmd_role)
cli.add_command(cmd_subject)
cli.add_command(cmd_slot)
cli.add_command(cmd_assignment)
cli.add_command(cmd_attendance)
cli.add_command(cmd_backup)
cli.add_command(cmd_export)
cli.add_command(cmd_share)
cli.add_command(cmd_notify)
cli.add_command(cmd_reminders)
cli.add_command(cmd_calendar)
cli.add_command(cmd_docs)
cli.add_command(cmd_students)
cli.add_command(cmd_tests)


if __name__ == "__main__":
    main()
