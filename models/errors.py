"""Fehlerklassen der Anwendung.

Lokale Speicherfehler sind für den Aufrufer fatal (StorageError).
Fehler des Remote-Spiegels verlassen den Sync-Koordinator nie.
"""


class ScheduleAppError(Exception):
    """Basisklasse aller fachlichen Fehler."""


class StorageError(ScheduleAppError):
    """Lokaler Speicher konnte nicht gelesen oder geschrieben werden."""


class RemoteMirrorError(ScheduleAppError):
    """Remote-Spiegel nicht erreichbar oder Antwort unbrauchbar."""


class BackupError(ScheduleAppError):
    """Sicherung fehlt oder hat ein ungültiges Format."""


class EntityNotFoundError(ScheduleAppError):
    """Referenzierte ID existiert nicht."""


class PermissionDeniedError(ScheduleAppError):
    """Aktion ist für die aktuelle Rolle nicht erlaubt."""


class DocumentRejectedError(ScheduleAppError):
    """Hochgeladene Datei erfüllt die Anforderungen nicht (Typ/Größe)."""


class InvalidEntityError(ScheduleAppError):
    """Eingabe unvollständig (z.B. Test ohne Fragen)."""


class NotificationPlatformError(ScheduleAppError):
    """Plattform-Hinweis konnte nicht angezeigt werden."""
