"""Öffentlich geteilte Stundenpläne.

Mit Remote-Spiegel landen Freigaben in der Sammlung "shared-schedules";
ohne (oder wenn der Spiegel scheitert) wird eine lokale Freigabe mit
"local_"-ID unter "shared-schedule-<id>" abgelegt. Freigaben laufen nach
30 Tagen ab; jeder Abruf erhöht den Aufrufzähler, remote wie lokal.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from config.defaults import COLLECTION_SHARED, SHARE_LIFETIME_DAYS, SHARED_SCHEDULE_PREFIX
from models.base import new_id
from models.errors import InvalidEntityError, RemoteMirrorError, StorageError
from models.schedule_document import ScheduleDocument
from models.shared_schedule import SharedSchedule
from storage.sync import SyncCoordinator

logger = logging.getLogger(__name__)

LOCAL_SHARE_PREFIX = "local_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShareService:
    """Veröffentlicht, lädt und listet geteilte Stundenpläne."""

    def __init__(self, coordinator: SyncCoordinator,
                 clock: Callable[[], datetime] = _utcnow):
        self.coordinator = coordinator
        self.store = coordinator.store
        self._now = clock

    # ─── Veröffentlichen ───

    async def publish(self, title: str, doc: ScheduleDocument) -> str:
        """Veröffentlicht Fächer und Slots; gibt die Freigabe-ID zurück."""
        title = title.strip()
        if not title:
            raise InvalidEntityError("Title required")
        now = self._now()
        share = SharedSchedule(
            title=title,
            subjects=doc.subjects,
            time_slots=doc.time_slots,
            created_at=now,
            expires_at=now + timedelta(days=SHARE_LIFETIME_DAYS),
            views=0,
        )
        payload = share.to_json_dict()
        payload.pop("id")

        if self.coordinator.remote is not None:
            try:
                share_id = await self.coordinator.call_remote(
                    lambda remote: remote.append(COLLECTION_SHARED, payload)
                )
                logger.info(f"Stundenplan geteilt (remote): {share_id}")
                await self.coordinator.track_usage("schedule_shared",
                                                   {"shareId": share_id})
                return share_id
            except RemoteMirrorError as e:
                logger.warning(f"Freigabe remote gescheitert, lokal gespeichert: {e}")

        share_id = new_id(LOCAL_SHARE_PREFIX.rstrip("_"))
        self.store.set(f"{SHARED_SCHEDULE_PREFIX}{share_id}", payload)
        logger.info(f"Stundenplan geteilt (lokal): {share_id}")
        return share_id

    # ─── Abrufen ───

    async def fetch(self, share_id: str) -> Optional[SharedSchedule]:
        """Lädt eine Freigabe; None wenn unbekannt, abgelaufen oder nicht lesbar."""
        if share_id.startswith(LOCAL_SHARE_PREFIX) or self.coordinator.remote is None:
            return self._fetch_local(share_id)

        try:
            raw = await self.coordinator.call_remote(
                lambda remote: remote.get(COLLECTION_SHARED, share_id)
            )
        except RemoteMirrorError as e:
            logger.warning(f"Freigabe {share_id} nicht abrufbar: {e}")
            return None
        share = self._parse(share_id, raw)
        if share is None:
            return None

        share.views += 1
        try:
            await self.coordinator.call_remote(
                lambda remote: remote.set(COLLECTION_SHARED, share_id,
                                          {"views": share.views}, merge=True)
            )
        except RemoteMirrorError as e:
            logger.warning(f"Aufrufzähler für {share_id} nicht aktualisiert: {e}")
        return share

    def _fetch_local(self, share_id: str) -> Optional[SharedSchedule]:
        try:
            raw = self.store.get(f"{SHARED_SCHEDULE_PREFIX}{share_id}")
        except StorageError as e:
            logger.error(f"Lokale Freigabe {share_id} nicht lesbar: {e}")
            return None
        share = self._parse(share_id, raw)
        if share is None:
            return None

        share.views += 1
        try:
            self.store.set(f"{SHARED_SCHEDULE_PREFIX}{share_id}", {**raw, "views": share.views})
        except StorageError as e:
            logger.warning(f"Aufrufzähler für {share_id} nicht aktualisiert: {e}")
        return share

    def _parse(self, share_id: str, raw: Optional[dict]) -> Optional[SharedSchedule]:
        if raw is None:
            return None
        try:
            share = SharedSchedule.model_validate({**raw, "id": share_id})
        except ValidationError as e:
            logger.warning(f"Freigabe {share_id} ungültig: {e}")
            return None
        if share.is_expired(self._now()):
            logger.info(f"Freigabe {share_id} ist abgelaufen")
            return None
        return share

    # ─── Galerie ───

    async def gallery(self, limit: int = 10) -> list[SharedSchedule]:
        """Die neuesten nicht abgelaufenen Remote-Freigaben.

        Abgelaufene und ungültige Einträge zählen nicht gegen ``limit``: das
        Abfragefenster wird verdoppelt, bis genug Freigaben gefunden sind oder
        die Sammlung erschöpft ist.
        """
        if self.coordinator.remote is None or limit <= 0:
            return []
        window = limit
        while True:
            try:
                rows = await self.coordinator.call_remote(
                    lambda remote: remote.query(COLLECTION_SHARED, order_by="createdAt",
                                                descending=True, limit=window)
                )
            except RemoteMirrorError as e:
                logger.warning(f"Galerie nicht abrufbar: {e}")
                return []
            shares = []
            for row in rows:
                share = self._parse(str(row.get("id", "")), row)
                if share is not None:
                    shares.append(share)
            if len(shares) >= limit or len(rows) < window:
                return shares[:limit]
            window *= 2

    # ─── Import ───

    @staticmethod
    def import_into(doc: ScheduleDocument, share: SharedSchedule) -> tuple[int, int]:
        """Übernimmt eine Freigabe in das eigene Dokument (neue IDs)."""
        return doc.import_shared(share.subjects, share.time_slots)
