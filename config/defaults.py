from config.schema import (
    AppConfig,
    NotificationConfig,
    ReminderConfig,
    RemoteConfig,
    StorageConfig,
)

# ─── Wochentage ───────────────────────────────────────────────────────────────

# Reihenfolge wie datetime.weekday(): 0=Montag .. 6=Sonntag
WEEKDAYS: list[str] = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]

# Tage, die in Text-Export und Stundenraster erscheinen
SCHOOL_DAYS: list[str] = WEEKDAYS[:6]

# ─── Schlüssel des lokalen Speichers ──────────────────────────────────────────

KEY_SCHEDULE = "class-schedule-data"
KEY_DEVICE_ID = "class-schedule-device-id"
KEY_ATTENDANCE = "attendance-records"
KEY_CLASS_ATTENDANCE = "class-attendance"
KEY_PRACTICE_TESTS = "practice-tests"
KEY_TEST_RESULTS = "test-results"
KEY_DOCUMENTS = "pdf-documents"
KEY_ACADEMIC_EVENTS = "academic-events"
KEY_NOTIFICATION_SETTINGS = "notification-settings"
KEY_IN_APP_NOTIFICATIONS = "in-app-notifications"
KEY_LOGGED_STUDENTS = "logged-students"
KEY_USER_ROLE = "user-role"
KEY_CURRENT_USER = "current-user"
KEY_PLATFORM_PERMISSION = "platform-notification-permission"
SHARED_SCHEDULE_PREFIX = "shared-schedule-"

# ─── Remote-Sammlungen ────────────────────────────────────────────────────────

COLLECTION_SCHEDULES = "schedules"
COLLECTION_SHARED = "shared-schedules"
COLLECTION_ANALYTICS = "analytics"

# ─── Sonstige Konstanten ──────────────────────────────────────────────────────

BACKUP_VERSION = "2.0"
SHARE_LIFETIME_DAYS = 30
UNKNOWN_SUBJECT = "Unknown Subject"
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024
SUBJECT_COLORS: list[str] = [
    "#3B82F6", "#EF4444", "#10B981", "#F59E0B", "#8B5CF6", "#EC4899",
    "#06B6D4", "#84CC16",
]

# Gesetzliche Feiertage 2024 (werden nie gespeichert, nur eingeblendet)
NATIONAL_HOLIDAYS: list[dict] = [
    {"id": "nh1", "title": "New Year's Day", "date": "2024-01-01"},
    {"id": "nh2", "title": "Martin Luther King Jr. Day", "date": "2024-01-15"},
    {"id": "nh3", "title": "Presidents' Day", "date": "2024-02-19"},
    {"id": "nh4", "title": "Memorial Day", "date": "2024-05-27"},
    {"id": "nh5", "title": "Independence Day", "date": "2024-07-04"},
    {"id": "nh6", "title": "Labor Day", "date": "2024-09-02"},
    {"id": "nh7", "title": "Columbus Day", "date": "2024-10-14"},
    {"id": "nh8", "title": "Veterans Day", "date": "2024-11-11"},
    {"id": "nh9", "title": "Thanksgiving Day", "date": "2024-11-28"},
    {"id": "nh10", "title": "Christmas Day", "date": "2024-12-25"},
]


def default_storage() -> StorageConfig:
    """Standard: Profil-Verzeichnis "profile" im Arbeitsverzeichnis."""
    return StorageConfig(data_dir="profile", json_indent=2)


def default_remote() -> RemoteConfig:
    """Standard: kein Remote-Spiegel (nur lokaler Speicher).

    Wird ein Spiegel aktiviert, gelten 5 s Zeitlimit pro Aufruf und eine
    Pause von 5 Minuten nach 3 Fehlschlägen in Folge.
    """
    return RemoteConfig(
        enabled=False,
        base_url=None,
        timeout_seconds=5.0,
        failure_threshold=3,
        cooldown_seconds=300,
    )


def default_app_config() -> AppConfig:
    """Vollständige Default-Konfiguration."""
    return AppConfig(
        profile_name="Mein Stundenplan",
        storage=default_storage(),
        remote=default_remote(),
        reminders=ReminderConfig(default_lead_minutes=10, daily_replan=True),
        notifications=NotificationConfig(auto_dismiss_seconds=10, in_app_limit=50),
    )
