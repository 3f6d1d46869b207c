"""Datenmodell für einen wöchentlich wiederkehrenden Zeitslot."""

from datetime import time

from pydantic import field_validator, model_validator

from config.defaults import WEEKDAYS
from models.base import StoredModel


def parse_hhmm(value: str) -> time:
    """Wandelt "HH:MM" in datetime.time um (ValueError bei falschem Format)."""
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Uhrzeit muss das Format HH:MM haben: {value!r}")
    return time(int(parts[0]), int(parts[1]))


class TimeSlot(StoredModel):
    """Ein Unterrichtsblock im Wochenraster.

    Es wird nur der Wochentag gespeichert, keine konkreten Termine –
    Vorkommen werden bei Bedarf berechnet (siehe reminders.occurrence).
    """

    id: str
    subject_id: str
    # Wochentag als englischer Name ("Monday".."Sunday")
    day: str
    # Lokale Uhrzeiten "HH:MM", start_time < end_time
    start_time: str
    end_time: str

    @field_validator("day")
    @classmethod
    def normalize_day(cls, v: str) -> str:
        name = v.strip().capitalize()
        if name not in WEEKDAYS:
            raise ValueError(f"Unbekannter Wochentag: {v!r}")
        return name

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time_format(cls, v: str) -> str:
        return parse_hhmm(v).strftime("%H:%M")

    @model_validator(mode="after")
    def _check_order(self):
        if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
            raise ValueError(
                f"Beginn ({self.start_time}) muss vor Ende ({self.end_time}) liegen"
            )
        return self

    @property
    def weekday_index(self) -> int:
        """0=Montag .. 6=Sonntag (wie datetime.weekday())."""
        return WEEKDAYS.index(self.day)

    @property
    def start(self) -> time:
        return parse_hhmm(self.start_time)

    @property
    def end(self) -> time:
        return parse_hhmm(self.end_time)

    def __str__(self) -> str:
        return f"{self.day} {self.start_time}-{self.end_time}"
