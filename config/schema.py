from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


# ─── LOKALER SPEICHER ───

class StorageConfig(BaseModel):
    """Ablage des lokalen Key-Value-Speichers (ein JSON-Dokument pro Schlüssel)."""
    # Verzeichnis, in dem die Profil-Daten liegen
    data_dir: str = Field("profile",
        description="Verzeichnis für lokale Daten (ein Profil)")
    # Einrückung der JSON-Dateien (0 = kompakt)
    json_indent: int = Field(2, ge=0, le=8,
        description="Einrückung der JSON-Dateien")


# ─── REMOTE-SPIEGEL ───

class RemoteConfig(BaseModel):
    """Optionaler Remote-Spiegel (Dokument-Datenbank über HTTP).

    Der lokale Speicher bleibt immer maßgeblich. Fehler des Spiegels werden
    protokolliert, aber nie an den Aufrufer weitergereicht.
    """
    # Spiegel aktiv?
    enabled: bool = Field(False,
        description="Remote-Spiegel aktiv")
    # Basis-URL des Dokument-Dienstes, z.B. "https://mirror.example.org/api"
    base_url: Optional[str] = Field(None,
        description="Basis-URL des Dokument-Dienstes")
    # Optionaler API-Schlüssel (als Bearer-Token gesendet)
    api_key: Optional[str] = Field(None,
        description="API-Schlüssel (optional)")
    # Harte Obergrenze pro Remote-Aufruf
    timeout_seconds: float = Field(5.0, gt=0, le=120,
        description="Zeitlimit pro Remote-Aufruf (Sekunden)")
    # Nach so vielen Fehlern in Folge wird der Spiegel pausiert
    failure_threshold: int = Field(3, ge=1,
        description="Fehler in Folge bis zur Pause")
    # Dauer der Pause nach Erreichen der Fehlergrenze
    cooldown_seconds: int = Field(300, ge=0,
        description="Pause nach Fehlerserie (Sekunden)")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    @property
    def is_usable(self) -> bool:
        """True wenn der Spiegel aktiviert und adressierbar ist."""
        return self.enabled and bool(self.base_url)


# ─── ERINNERUNGEN ───

class ReminderConfig(BaseModel):
    """Voreinstellungen für Unterrichts-Erinnerungen."""
    # Vorlaufzeit in Minuten (Standard des Einstellungsdialogs)
    default_lead_minutes: int = Field(10, ge=0, le=24 * 60,
        description="Vorlaufzeit in Minuten")
    # Täglicher Neuplan um Mitternacht
    daily_replan: bool = Field(True,
        description="Täglich um Mitternacht neu planen")
    # Prüfintervall für Änderungen am gespeicherten Stundenplan
    watch_seconds: int = Field(30, ge=1, le=3600,
        description="Prüfintervall für Stundenplan-Änderungen (Sekunden)")


# ─── BENACHRICHTIGUNGEN ───

class NotificationConfig(BaseModel):
    """Plattform-Hinweise und In-App-Liste."""
    # Automatisches Schließen des Plattform-Hinweises nach n Sekunden
    auto_dismiss_seconds: int = Field(10, ge=1, le=600,
        description="Automatisches Schließen (Sekunden)")
    # Maximale Länge der In-App-Liste (älteste fallen heraus)
    in_app_limit: int = Field(50, ge=1, le=1000,
        description="Maximale Anzahl In-App-Hinweise")


# ─── LOGGING ───

class LoggingConfig(BaseModel):
    """Protokollierung über das logging-Modul (Ausgabe via Rich)."""
    level: str = Field("WARNING",
        description="Log-Level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unbekanntes Log-Level: {v}")
        return v


# ─── GESAMT-CONFIG ───

class AppConfig(BaseModel):
    """Gesamtkonfiguration der Anwendung."""
    # Anzeigename des Profils (z.B. Name der Schule oder Klasse)
    profile_name: str = Field("Mein Stundenplan",
        description="Anzeigename des Profils")
    # Lokaler Speicher
    storage: StorageConfig = Field(default_factory=StorageConfig)
    # Remote-Spiegel (optional)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    # Erinnerungen
    reminders: ReminderConfig = Field(default_factory=ReminderConfig)
    # Benachrichtigungen
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    # Protokollierung
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
