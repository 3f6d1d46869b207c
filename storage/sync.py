"""Sync-Koordinator: lokal-first Speichern mit Best-Effort-Spiegelung.

Ablauf save():
  1. Lokaler Speicher wird synchron und bedingungslos geschrieben.
     Scheitert das, erhält der Aufrufer einen StorageError.
  2. Danach (asynchron) Schreibversuch auf den Remote-Spiegel.
     Fehler werden protokolliert und nur über SaveResult sichtbar.

Ablauf load():
  Remote zuerst; bei Erfolg wird der lokale Cache aufgefrischt.
  Bei Fehler oder fehlendem Dokument: lokaler Speicher, sonst None.
  load() wirft nie.

Konsistenzmodell: "last write wins". Zwei gleichzeitige save()-Aufrufe
werden nicht koordiniert; ausstehende Remote-Schreibvorgänge werden nie
abgebrochen.

Nach ``failure_threshold`` Fehlschlägen in Folge pausiert der Spiegel für
``cooldown_seconds``. Übersprungene Schreibvorgänge werden nicht
nachgeholt – der nächste save() nach der Pause spiegelt das ganze Dokument.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from config.defaults import COLLECTION_ANALYTICS, COLLECTION_SCHEDULES, KEY_SCHEDULE
from config.schema import RemoteConfig
from models.errors import RemoteMirrorError, StorageError
from models.schedule_document import ScheduleDocument
from storage.local_store import LocalStore
from storage.remote_mirror import RemoteMirror

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Felder, die nur im Remote-Dokument existieren
_REMOTE_ONLY_FIELDS = ("lastUpdated", "deviceId")


class SyncStatus(str, Enum):
    LOCAL_ONLY = "local_only"          # kein Spiegel / Spiegel pausiert
    REMOTE_DURABLE = "remote_durable"  # lokal + remote bestätigt
    REMOTE_FAILED = "remote_failed"    # lokal gesichert, remote gescheitert


class SaveResult(BaseModel):
    """Ergebnis eines save(): lokal ist immer gesichert, remote optional."""

    status: SyncStatus
    error: Optional[str] = None

    @property
    def locally_durable(self) -> bool:
        return True

    @property
    def remotely_durable(self) -> bool:
        return self.status == SyncStatus.REMOTE_DURABLE


class SyncCoordinator:
    """Verbindet LocalStore (maßgeblich) und optionalen RemoteMirror."""

    def __init__(
        self,
        store: LocalStore,
        device_id: str,
        remote: Optional[RemoteMirror] = None,
        remote_config: Optional[RemoteConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.device_id = device_id
        self.remote = remote
        self.config = remote_config or RemoteConfig()
        self._clock = clock
        self._consecutive_failures = 0
        self._paused_until: Optional[float] = None

    # ─── Spiegel-Zustand ───

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def remote_paused(self) -> bool:
        """True während der Pause nach einer Fehlerserie."""
        if self._paused_until is None:
            return False
        if self._clock() >= self._paused_until:
            logger.info("Remote-Spiegel: Pause beendet, nächster Versuch folgt")
            self._paused_until = None
            return False
        return True

    def _remote_usable(self) -> bool:
        return self.remote is not None and not self.remote_paused()

    def _record_success(self) -> None:
        self._consecutive_failures = 0

    def _record_failure(self, error: Exception) -> None:
        self._consecutive_failures += 1
        logger.warning(f"Remote-Spiegel fehlgeschlagen ({self._consecutive_failures}x): {error}")
        if self._consecutive_failures >= self.config.failure_threshold:
            self._paused_until = self._clock() + self.config.cooldown_seconds
            self._consecutive_failures = 0
            logger.info(
                f"Remote-Spiegel pausiert für {self.config.cooldown_seconds}s "
                f"nach {self.config.failure_threshold} Fehlern in Folge"
            )

    async def _bounded(self, coro):
        """Begrenzt einen Remote-Aufruf auf timeout_seconds."""
        try:
            return await asyncio.wait_for(coro, timeout=self.config.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise RemoteMirrorError(
                f"Zeitüberschreitung nach {self.config.timeout_seconds}s"
            ) from e

    async def call_remote(self, operation: Callable[[RemoteMirror], Awaitable[T]]) -> T:
        """Führt eine Remote-Operation mit Zeitlimit und Fehlerzählung aus.

        Raises:
            RemoteMirrorError: kein Spiegel, Pause aktiv oder Aufruf gescheitert.
        """
        if self.remote is None:
            raise RemoteMirrorError("Kein Remote-Spiegel konfiguriert")
        if self.remote_paused():
            raise RemoteMirrorError("Remote-Spiegel pausiert")
        try:
            result = await self._bounded(operation(self.remote))
        except RemoteMirrorError as e:
            self._record_failure(e)
            raise
        self._record_success()
        return result

    # ─── Laden ───

    async def load(self) -> Optional[ScheduleDocument]:
        """Remote bevorzugt, sonst lokal, sonst None. Wirft nie."""
        if self._remote_usable():
            try:
                raw = await self._bounded(
                    self.remote.get(COLLECTION_SCHEDULES, self.device_id)
                )
                if raw is not None:
                    for field in _REMOTE_ONLY_FIELDS:
                        raw.pop(field, None)
                    doc = ScheduleDocument.model_validate(raw)
                    self._record_success()
                    self._refresh_cache(doc)
                    logger.info("Daten vom Remote-Spiegel geladen")
                    return doc
                self._record_success()
            except (RemoteMirrorError, ValidationError) as e:
                self._record_failure(e)

        return self.load_local()

    def load_local(self) -> Optional[ScheduleDocument]:
        """Nur lokaler Speicher; None bei fehlenden oder unlesbaren Daten."""
        try:
            raw = self.store.get(KEY_SCHEDULE)
            if raw is None:
                return None
            doc = ScheduleDocument.model_validate(raw)
            logger.info("Daten aus lokalem Speicher geladen")
            return doc
        except (StorageError, ValidationError) as e:
            logger.error(f"Lokale Daten nicht lesbar: {e}")
            return None

    def _refresh_cache(self, doc: ScheduleDocument) -> None:
        try:
            self.store.set(KEY_SCHEDULE, doc.to_json_dict())
        except StorageError as e:
            logger.error(f"Lokaler Cache konnte nicht aufgefrischt werden: {e}")

    # ─── Speichern ───

    def write_local(self, doc: ScheduleDocument) -> dict:
        """Schritt 1 von save(): synchron, Fehler sind für den Aufrufer fatal."""
        payload = doc.to_json_dict()
        self.store.set(KEY_SCHEDULE, payload)
        return payload

    async def mirror(self, payload: dict) -> SaveResult:
        """Schritt 2 von save(): Remote-Versuch, wirft nie."""
        if self.remote is None:
            return SaveResult(status=SyncStatus.LOCAL_ONLY)
        if self.remote_paused():
            return SaveResult(status=SyncStatus.LOCAL_ONLY, error="Spiegel pausiert")
        document = {
            **payload,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "deviceId": self.device_id,
        }
        try:
            await self._bounded(
                self.remote.set(COLLECTION_SCHEDULES, self.device_id, document)
            )
        except RemoteMirrorError as e:
            self._record_failure(e)
            return SaveResult(status=SyncStatus.REMOTE_FAILED, error=str(e))
        self._record_success()
        logger.info("Daten zum Remote-Spiegel synchronisiert")
        return SaveResult(status=SyncStatus.REMOTE_DURABLE)

    async def save(self, doc: ScheduleDocument) -> SaveResult:
        """Lokal schreiben, danach Remote versuchen."""
        payload = self.write_local(doc)
        return await self.mirror(payload)

    def save_nowait(self, doc: ScheduleDocument) -> "asyncio.Task[SaveResult]":
        """Lokal schreiben und den Remote-Versuch als Task einplanen.

        Muss innerhalb einer laufenden Event-Loop aufgerufen werden.
        """
        payload = self.write_local(doc)
        return asyncio.get_running_loop().create_task(self.mirror(payload))

    # ─── Nutzungsstatistik ───

    async def track_usage(self, action: str, details: Optional[dict] = None) -> None:
        """Best-Effort-Eintrag in die Analytics-Sammlung; Fehler nur als Debug-Log."""
        if not self._remote_usable():
            return
        entry = {
            "action": action,
            "details": details or {},
            "deviceId": self.device_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self._bounded(self.remote.append(COLLECTION_ANALYTICS, entry))
        except RemoteMirrorError as e:
            logger.debug(f"Analytics fehlgeschlagen: {e}")
