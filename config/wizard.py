"""Interaktiver Setup-Wizard für die Ersteinrichtung eines Profils.

Führt den Nutzer Schritt für Schritt durch Speicher, Remote-Spiegel und
Erinnerungen. Nutzt rich für schöne Konsolenausgabe.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.schema import (
    AppConfig,
    NotificationConfig,
    ReminderConfig,
    RemoteConfig,
    StorageConfig,
)
from config.defaults import default_remote

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _info(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


def _success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


# ─── SCHRITT 1: Profil & Speicher ───

def _wizard_storage() -> tuple[str, StorageConfig]:
    _header("Schritt 1 — Profil & lokaler Speicher")
    _info("Alle Daten werden lokal als JSON-Dateien abgelegt.")

    name = Prompt.ask("Name des Profils", default="Mein Stundenplan")
    data_dir = Prompt.ask("Datenverzeichnis", default="profile")
    return name, StorageConfig(data_dir=data_dir)


# ─── SCHRITT 2: Remote-Spiegel ───

def _wizard_remote() -> RemoteConfig:
    _header("Schritt 2 — Remote-Spiegel (optional)")
    _info("Der Spiegel sichert Daten zusätzlich in einer Dokument-Datenbank.\n"
          "Ist er nicht erreichbar, arbeitet die App unverändert lokal weiter.")

    if not Confirm.ask("Remote-Spiegel verwenden?", default=False):
        return default_remote()

    base_url = Prompt.ask("Basis-URL", default="http://localhost:8000/api")
    timeout = FloatPrompt.ask("Zeitlimit pro Aufruf (Sekunden)", default=5.0)
    threshold = IntPrompt.ask("Fehler in Folge bis zur Pause", default=3)
    return RemoteConfig(
        enabled=True,
        base_url=base_url,
        timeout_seconds=timeout,
        failure_threshold=threshold,
    )


# ─── SCHRITT 3: Erinnerungen ───

def _wizard_reminders() -> tuple[ReminderConfig, NotificationConfig]:
    _header("Schritt 3 — Erinnerungen")
    lead = IntPrompt.ask("Erinnerung wie viele Minuten vor Unterrichtsbeginn?",
                         default=10)
    dismiss = IntPrompt.ask("Hinweis automatisch schließen nach (Sekunden)",
                            default=10)
    return (
        ReminderConfig(default_lead_minutes=lead),
        NotificationConfig(auto_dismiss_seconds=dismiss),
    )


def _show_summary(config: AppConfig) -> None:
    """Zeigt die fertige Konfiguration als Tabelle an."""
    table = Table(title="Zusammenfassung", box=box.ROUNDED)
    table.add_column("Bereich", style="bold")
    table.add_column("Wert")

    table.add_row("Profil", config.profile_name)
    table.add_row("Datenverzeichnis", config.storage.data_dir)
    table.add_row(
        "Remote-Spiegel",
        config.remote.base_url if config.remote.is_usable else "[dim]aus[/dim]",
    )
    table.add_row("Vorlaufzeit", f"{config.reminders.default_lead_minutes} min")
    table.add_row("Hinweis-Dauer", f"{config.notifications.auto_dismiss_seconds}s")
    console.print(table)


# ─── HAUPT-WIZARD ───

def run_wizard() -> Optional[AppConfig]:
    """Führt den interaktiven Setup-Wizard aus.

    Returns:
        Fertige AppConfig oder None, wenn der Nutzer abbricht.
    """
    console.print()
    console.print(Panel(
        "[bold]Willkommen bei Klassenplan![/bold]\n\n"
        "Stundenplan, Aufgaben, Anwesenheit und Erinnerungen –\n"
        "lokal gespeichert, optional gespiegelt.\n\n"
        "[dim]Standard-Werte können mit Enter übernommen werden.[/dim]",
        title="[bold cyan]Klassenplan[/bold cyan]",
        border_style="cyan",
    ))

    if not Confirm.ask("\nMöchten Sie jetzt das Profil einrichten?", default=True):
        console.print("[yellow]Einrichtung abgebrochen.[/yellow]")
        return None

    try:
        name, storage = _wizard_storage()
        remote = _wizard_remote()
        reminders, notifications = _wizard_reminders()

        config = AppConfig(
            profile_name=name,
            storage=storage,
            remote=remote,
            reminders=reminders,
            notifications=notifications,
        )

        _show_summary(config)

        if not Confirm.ask("\nKonfiguration speichern?", default=True):
            console.print("[yellow]Konfiguration wird nicht gespeichert.[/yellow]")
            return None

        _success("Konfiguration wird gespeichert...")
        return config

    except KeyboardInterrupt:
        console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return None
    except ValueError as e:
        console.print(f"\n[red]Fehler während der Konfiguration: {e}[/red]")
        return None
