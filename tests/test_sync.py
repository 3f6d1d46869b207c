"""Tests für lokalen Speicher, Remote-Spiegel, Synchronisation, Sicherung und Teilen."""

import asyncio
import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from config.defaults import KEY_SCHEDULE
from config.schema import RemoteConfig
from models.errors import BackupError, InvalidEntityError, RemoteMirrorError, StorageError
from models.schedule_document import ScheduleDocument
from storage.backup import (
    backup_filename,
    create_backup,
    parse_backup,
    read_backup,
    restore_from_backup,
    write_backup,
)
from storage.local_store import LocalStore
from storage.remote_mirror import HttpRemoteMirror, InMemoryRemoteMirror
from storage.sharing import ShareService
from storage.sync import SyncCoordinator, SyncStatus


DEVICE = "device_1_abcdefghi"


@pytest.fixture
def store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "profile")


@pytest.fixture
def doc() -> ScheduleDocument:
    d = ScheduleDocument()
    math = d.add_subject("Mathematics", room="M101", instructor="Ms. Lee")
    d.add_time_slot(math.id, "Monday", "09:00", "09:45")
    d.add_assignment(math.id, "Worksheet", date(2024, 9, 10))
    return d


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self) -> float:
        return self.t


class SlowMirror(InMemoryRemoteMirror):
    """Spiegel, der nie rechtzeitig antwortet."""

    async def set(self, collection, key, document, merge=False):
        await asyncio.sleep(5)


# ─── LocalStore ───────────────────────────────────────────────────────────────

class TestLocalStore:
    def test_set_get_remove(self, store: LocalStore):
        assert store.get("x") is None
        store.set("x", {"a": 1})
        assert store.get("x") == {"a": 1}
        assert store.exists("x")
        assert store.remove("x") is True
        assert store.remove("x") is False

    def test_keys_with_prefix(self, store: LocalStore):
        store.set("shared-schedule-a", {})
        store.set("shared-schedule-b", {})
        store.set("other", 1)
        assert store.keys("shared-schedule-") == ["shared-schedule-a", "shared-schedule-b"]

    def test_get_list_rejects_non_list(self, store: LocalStore):
        store.set("k", {"not": "a list"})
        with pytest.raises(StorageError):
            store.get_list("k")

    def test_corrupt_file_raises(self, store: LocalStore):
        store.set("k", [1])
        (store.data_dir / "k.json").write_text("{kaputt", encoding="utf-8")
        with pytest.raises(StorageError):
            store.get("k")

    def test_invalid_key(self, store: LocalStore):
        with pytest.raises(StorageError):
            store.set("../ausbruch", 1)

    def test_get_text(self, store: LocalStore):
        store.set("device", "device_1")
        store.set("zahl", 3)
        assert store.get_text("device") == "device_1"
        assert store.get_text("zahl") is None


# ─── SyncCoordinator ──────────────────────────────────────────────────────────

class TestSyncCoordinator:
    def test_save_without_remote_is_local_only(self, store, doc):
        coord = SyncCoordinator(store, DEVICE)
        result = asyncio.run(coord.save(doc))
        assert result.status == SyncStatus.LOCAL_ONLY
        assert result.locally_durable and not result.remotely_durable
        assert store.get(KEY_SCHEDULE) == doc.to_json_dict()

    def test_unreachable_remote_never_loses_local_save(self, store, doc):
        """Lokales Speichern gelingt, auch wenn jeder Remote-Aufruf scheitert."""
        remote = InMemoryRemoteMirror(available=False)
        coord = SyncCoordinator(store, DEVICE, remote=remote)

        result = asyncio.run(coord.save(doc))
        assert result.status == SyncStatus.REMOTE_FAILED
        assert result.error

        loaded = asyncio.run(coord.load())
        assert loaded == doc

    def test_save_mirrors_with_metadata(self, store, doc):
        remote = InMemoryRemoteMirror()
        coord = SyncCoordinator(store, DEVICE, remote=remote)
        result = asyncio.run(coord.save(doc))

        assert result.status == SyncStatus.REMOTE_DURABLE
        mirrored = remote.collections["schedules"][DEVICE]
        assert mirrored["deviceId"] == DEVICE
        assert "lastUpdated" in mirrored
        assert mirrored["subjects"][0]["name"] == "Mathematics"

    def test_load_prefers_remote_and_refreshes_cache(self, store, doc):
        remote = InMemoryRemoteMirror()
        remote.collections["schedules"] = {
            DEVICE: {**doc.to_json_dict(), "lastUpdated": "2024-09-01T00:00:00Z",
                     "deviceId": DEVICE},
        }
        coord = SyncCoordinator(store, DEVICE, remote=remote)

        loaded = asyncio.run(coord.load())
        assert loaded == doc
        assert store.get(KEY_SCHEDULE) == doc.to_json_dict()

    def test_load_falls_back_on_invalid_remote_document(self, store, doc):
        store.set(KEY_SCHEDULE, doc.to_json_dict())
        remote = InMemoryRemoteMirror()
        remote.collections["schedules"] = {DEVICE: {"subjects": "kaputt"}}
        coord = SyncCoordinator(store, DEVICE, remote=remote)
        assert asyncio.run(coord.load()) == doc

    def test_load_nothing_stored(self, store):
        coord = SyncCoordinator(store, DEVICE, remote=InMemoryRemoteMirror())
        assert asyncio.run(coord.load()) is None

    def test_corrupt_local_data_loads_as_none(self, store):
        store.set(KEY_SCHEDULE, {"subjects": [{"id": 1}]})
        assert SyncCoordinator(store, DEVICE).load_local() is None

    def test_timeout_counts_as_failure(self, store, doc):
        config = RemoteConfig(enabled=True, base_url="http://x", timeout_seconds=0.05)
        coord = SyncCoordinator(store, DEVICE, remote=SlowMirror(), remote_config=config)
        result = asyncio.run(coord.save(doc))
        assert result.status == SyncStatus.REMOTE_FAILED
        assert "Zeitüberschreitung" in result.error
        assert store.get(KEY_SCHEDULE) == doc.to_json_dict()

    def test_cooldown_after_failure_series(self, store, doc):
        """Nach der Fehlergrenze wird der Spiegel pausiert, danach erneut versucht."""
        clock = FakeClock()
        remote = InMemoryRemoteMirror(available=False)
        config = RemoteConfig(failure_threshold=2, cooldown_seconds=60)
        coord = SyncCoordinator(store, DEVICE, remote=remote, remote_config=config,
                                clock=clock)

        asyncio.run(coord.save(doc))
        assert not coord.remote_paused()
        asyncio.run(coord.save(doc))
        assert coord.remote_paused()

        calls_before = len(remote.calls)
        result = asyncio.run(coord.save(doc))
        assert result.status == SyncStatus.LOCAL_ONLY
        assert len(remote.calls) == calls_before

        clock.t += 61
        remote.available = True
        result = asyncio.run(coord.save(doc))
        assert result.status == SyncStatus.REMOTE_DURABLE
        assert coord.consecutive_failures == 0

    def test_save_nowait_writes_local_immediately(self, store, doc):
        remote = InMemoryRemoteMirror()
        coord = SyncCoordinator(store, DEVICE, remote=remote)

        async def run():
            task = coord.save_nowait(doc)
            assert store.get(KEY_SCHEDULE) == doc.to_json_dict()
            return await task

        assert asyncio.run(run()).status == SyncStatus.REMOTE_DURABLE

    def test_call_remote_without_mirror(self, store):
        coord = SyncCoordinator(store, DEVICE)
        with pytest.raises(RemoteMirrorError):
            asyncio.run(coord.call_remote(lambda r: r.get("x", "y")))

    def test_track_usage_appends_analytics(self, store):
        remote = InMemoryRemoteMirror()
        coord = SyncCoordinator(store, DEVICE, remote=remote)
        asyncio.run(coord.track_usage("backup_created", {"n": 1}))
        entry = next(iter(remote.collections["analytics"].values()))
        assert entry["action"] == "backup_created"
        assert entry["deviceId"] == DEVICE

    def test_track_usage_failure_is_silent(self, store):
        coord = SyncCoordinator(store, DEVICE, remote=InMemoryRemoteMirror(available=False))
        asyncio.run(coord.track_usage("app_opened"))


# ─── HttpRemoteMirror ─────────────────────────────────────────────────────────

class TestHttpRemoteMirror:
    def _mirror(self, handler) -> HttpRemoteMirror:
        return HttpRemoteMirror("http://mirror.test/api", api_key="geheim",
                                transport=httpx.MockTransport(handler))

    def test_get_document(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"subjects": []})

        async def run():
            mirror = self._mirror(handler)
            try:
                return await mirror.get("schedules", "dev1")
            finally:
                await mirror.close()

        assert asyncio.run(run()) == {"subjects": []}
        assert seen[0].url.path == "/api/documents/schedules/dev1"
        assert seen[0].headers["Authorization"] == "Bearer geheim"

    def test_missing_document_is_none(self):
        async def run():
            mirror = self._mirror(lambda request: httpx.Response(404))
            try:
                return await mirror.get("schedules", "dev1")
            finally:
                await mirror.close()

        assert asyncio.run(run()) is None

    def test_server_error_raises(self):
        async def run():
            mirror = self._mirror(lambda request: httpx.Response(500))
            try:
                await mirror.get("schedules", "dev1")
            finally:
                await mirror.close()

        with pytest.raises(RemoteMirrorError, match="HTTP 500"):
            asyncio.run(run())

    def test_merge_uses_patch(self):
        methods = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append((request.method, json.loads(request.content)))
            return httpx.Response(200, json={})

        async def run():
            mirror = self._mirror(handler)
            try:
                await mirror.set("shared-schedules", "s1", {"views": 2}, merge=True)
                await mirror.set("schedules", "dev1", {"subjects": []})
            finally:
                await mirror.close()

        asyncio.run(run())
        assert methods == [("PATCH", {"views": 2}), ("PUT", {"subjects": []})]

    def test_append_and_query(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(201, json={"id": "abc"})
            assert request.url.params["order_by"] == "createdAt"
            assert request.url.params["direction"] == "desc"
            assert request.url.params["limit"] == "5"
            return httpx.Response(200, json=[{"id": "abc"}])

        async def run():
            mirror = self._mirror(handler)
            try:
                new_id = await mirror.append("shared-schedules", {"title": "x"})
                rows = await mirror.query("shared-schedules", "createdAt", limit=5)
                return new_id, rows
            finally:
                await mirror.close()

        assert asyncio.run(run()) == ("abc", [{"id": "abc"}])

    def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("weg", request=request)

        async def run():
            mirror = self._mirror(handler)
            try:
                await mirror.append("analytics", {})
            finally:
                await mirror.close()

        with pytest.raises(RemoteMirrorError, match="Verbindungsfehler"):
            asyncio.run(run())

    def test_coordinator_with_http_mirror(self, store, doc):
        stored = {}

        def handler(request: httpx.Request) -> httpx.Response:
            stored[request.url.path] = json.loads(request.content)
            return httpx.Response(200, json={})

        async def run():
            mirror = self._mirror(handler)
            try:
                return await SyncCoordinator(store, DEVICE, remote=mirror).save(doc)
            finally:
                await mirror.close()

        assert asyncio.run(run()).status == SyncStatus.REMOTE_DURABLE
        assert stored[f"/api/documents/schedules/{DEVICE}"]["deviceId"] == DEVICE


# ─── Sicherung ────────────────────────────────────────────────────────────────

class TestBackup:
    def test_create_backup_fields(self, doc):
        now = datetime(2024, 9, 2, 8, 0, tzinfo=timezone.utc)
        backup = create_backup(doc, now)
        assert backup["version"] == "2.0"
        assert backup["backupDate"] == now.isoformat()
        assert len(backup["subjects"]) == 1

    def test_nothing_to_backup(self):
        with pytest.raises(BackupError, match="No data to backup"):
            create_backup(None)

    def test_filename(self):
        assert backup_filename(datetime(2024, 9, 2)) == "class-schedule-backup-2024-09-02.json"

    def test_write_and_read(self, tmp_path, doc):
        path = write_backup(doc, tmp_path / "b.json")
        assert read_backup(path) == doc

    def test_missing_array_rejected(self, doc):
        raw = create_backup(doc)
        del raw["timeSlots"]
        with pytest.raises(BackupError, match="Invalid backup file format"):
            parse_backup(raw)

    def test_non_object_rejected(self):
        with pytest.raises(BackupError):
            parse_backup([1, 2, 3])

    def test_other_version_accepted(self, doc):
        raw = {**create_backup(doc), "version": "1.0"}
        assert parse_backup(raw) == doc

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "kaputt.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(BackupError):
            read_backup(path)

    def test_rejected_restore_leaves_document_unchanged(self, store, doc):
        """Eine ungültige Sicherung verändert das gespeicherte Dokument nicht."""
        coord = SyncCoordinator(store, DEVICE)
        asyncio.run(coord.save(doc))
        before = store.get(KEY_SCHEDULE)

        with pytest.raises(BackupError):
            asyncio.run(restore_from_backup(coord, {"subjects": [], "assignments": []}))
        assert store.get(KEY_SCHEDULE) == before

    def test_restore_replaces_document(self, store, doc):
        coord = SyncCoordinator(store, DEVICE)
        asyncio.run(coord.save(ScheduleDocument()))
        restored, result = asyncio.run(restore_from_backup(coord, create_backup(doc)))
        assert restored == doc
        assert result.status == SyncStatus.LOCAL_ONLY
        assert coord.load_local() == doc


# ─── Teilen ───────────────────────────────────────────────────────────────────

NOW = datetime(2024, 9, 2, 12, 0, tzinfo=timezone.utc)


class TestShareService:
    def _service(self, store, remote=None, now=NOW) -> ShareService:
        return ShareService(SyncCoordinator(store, DEVICE, remote=remote),
                            clock=lambda: now)

    def test_title_required(self, store, doc):
        with pytest.raises(InvalidEntityError, match="Title required"):
            asyncio.run(self._service(store).publish("  ", doc))

    def test_local_share_without_remote(self, store, doc):
        service = self._service(store)
        share_id = asyncio.run(service.publish("Klasse 7b", doc))
        assert share_id.startswith("local_")
        assert store.exists(f"shared-schedule-{share_id}")

        share = asyncio.run(service.fetch(share_id))
        assert share.title == "Klasse 7b"
        assert share.subjects == doc.subjects
        assert share.expires_at == NOW + timedelta(days=30)

    def test_remote_share_counts_views(self, store, doc):
        remote = InMemoryRemoteMirror()
        service = self._service(store, remote)
        share_id = asyncio.run(service.publish("Klasse 7b", doc))

        assert not share_id.startswith("local_")
        assert "analytics" in remote.collections
        first = asyncio.run(service.fetch(share_id))
        second = asyncio.run(service.fetch(share_id))
        assert (first.views, second.views) == (1, 2)
        assert remote.collections["shared-schedules"][share_id]["views"] == 2

    def test_remote_failure_falls_back_to_local(self, store, doc):
        service = self._service(store, InMemoryRemoteMirror(available=False))
        share_id = asyncio.run(service.publish("Klasse 7b", doc))
        assert share_id.startswith("local_")
        assert asyncio.run(service.fetch(share_id)) is not None

    def test_expired_share_is_none(self, store, doc):
        share_id = asyncio.run(self._service(store).publish("Alt", doc))
        later = self._service(store, now=NOW + timedelta(days=31))
        assert asyncio.run(later.fetch(share_id)) is None

    def test_unknown_share_is_none(self, store):
        remote = InMemoryRemoteMirror()
        assert asyncio.run(self._service(store, remote).fetch("gibt-es-nicht")) is None

    def test_gallery_newest_first_without_expired(self, store, doc):
        remote = InMemoryRemoteMirror()
        asyncio.run(self._service(store, remote, now=NOW - timedelta(days=40))
                    .publish("Abgelaufen", doc))
        asyncio.run(self._service(store, remote, now=NOW - timedelta(days=2))
                    .publish("Älter", doc))
        asyncio.run(self._service(store, remote, now=NOW).publish("Neu", doc))

        titles = [s.title for s in asyncio.run(self._service(store, remote).gallery())]
        assert titles == ["Neu", "Älter"]

    def test_local_share_counts_views(self, store, doc):
        service = self._service(store)
        share_id = asyncio.run(service.publish("Klasse 7b", doc))
        first = asyncio.run(service.fetch(share_id))
        second = asyncio.run(service.fetch(share_id))
        assert (first.views, second.views) == (1, 2)
        stored = store.get(f"shared-schedule-{share_id}")
        assert stored["views"] == 2
        assert "id" not in stored

    def test_gallery_skips_broken_rows_within_limit(self, store, doc):
        """Ungültige Einträge verdrängen keine gültigen Freigaben aus der Galerie."""
        remote = InMemoryRemoteMirror()
        asyncio.run(self._service(store, remote, now=NOW - timedelta(days=2))
                    .publish("Älter", doc))
        asyncio.run(self._service(store, remote, now=NOW - timedelta(days=1))
                    .publish("Gestern", doc))
        asyncio.run(self._service(store, remote, now=NOW).publish("Neu", doc))
        shares = remote.collections["shared-schedules"]
        shares["kaputt-1"] = {"createdAt": "9999-01-01", "title": ""}
        shares["kaputt-2"] = {"createdAt": "9999-01-02"}

        gallery = asyncio.run(self._service(store, remote).gallery(limit=2))
        assert [s.title for s in gallery] == ["Neu", "Gestern"]

    def test_gallery_without_remote_is_empty(self, store):
        assert asyncio.run(self._service(store).gallery()) == []

    def test_import_into(self, store, doc):
        service = self._service(store)
        share = asyncio.run(service.fetch(asyncio.run(service.publish("X", doc))))
        target = ScheduleDocument()
        assert ShareService.import_into(target, share) == (1, 1)
        assert target.time_slots[0].subject_id == target.subjects[0].id
