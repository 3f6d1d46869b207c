"""Remote-Spiegel: Dokument-Datenbank als austauschbarer Kollaborateur.

Die App nutzt nur vier Operationen:
  get(collection, key)               → Dokument oder None
  set(collection, key, doc, merge)   → Bestätigung
  append(collection, doc)            → neue Dokument-ID
  query(collection, order_by, ...)   → Liste von Dokumenten

Alle Fehler werden als RemoteMirrorError gemeldet. Das interne
Replikations- und Konsistenzmodell des Dienstes ist hier bewusst unbekannt.
"""

from __future__ import annotations

import copy
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from models.errors import RemoteMirrorError

logger = logging.getLogger(__name__)


class RemoteMirror(ABC):
    """Schnittstelle des Remote-Spiegels (asynchron)."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[dict]:
        """Liest ein Dokument; None wenn es nicht existiert."""

    @abstractmethod
    async def set(self, collection: str, key: str, document: dict,
                  merge: bool = False) -> None:
        """Schreibt ein Dokument (merge=True: nur angegebene Felder)."""

    @abstractmethod
    async def append(self, collection: str, document: dict) -> str:
        """Legt ein Dokument mit vom Dienst vergebener ID an."""

    @abstractmethod
    async def query(self, collection: str, order_by: str,
                    descending: bool = True, limit: int = 10) -> list[dict]:
        """Sortierte, begrenzte Liste; jedes Dokument enthält seine "id"."""

    async def close(self) -> None:
        """Gibt Verbindungen frei (Standard: nichts zu tun)."""


# ─── In-Memory (Entwicklung, Tests, Demo) ─────────────────────────────────────

class InMemoryRemoteMirror(RemoteMirror):
    """Spiegel im Arbeitsspeicher.

    ``available=False`` simuliert einen nicht erreichbaren Dienst: jeder
    Aufruf wirft RemoteMirrorError.
    """

    def __init__(self, available: bool = True):
        self.available = available
        self.collections: dict[str, dict[str, dict]] = {}
        self.calls: list[tuple[str, str]] = []
        self._ids = itertools.count(1)

    def _check(self, op: str, collection: str) -> None:
        self.calls.append((op, collection))
        if not self.available:
            raise RemoteMirrorError(f"Remote-Spiegel nicht erreichbar ({op} {collection})")

    async def get(self, collection: str, key: str) -> Optional[dict]:
        self._check("get", collection)
        doc = self.collections.get(collection, {}).get(key)
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection: str, key: str, document: dict,
                  merge: bool = False) -> None:
        self._check("set", collection)
        docs = self.collections.setdefault(collection, {})
        if merge and key in docs:
            docs[key].update(copy.deepcopy(document))
        else:
            docs[key] = copy.deepcopy(document)

    async def append(self, collection: str, document: dict) -> str:
        self._check("append", collection)
        doc_id = f"doc{next(self._ids)}"
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(document)
        return doc_id

    async def query(self, collection: str, order_by: str,
                    descending: bool = True, limit: int = 10) -> list[dict]:
        self._check("query", collection)
        docs = [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self.collections.get(collection, {}).items()
        ]
        docs.sort(key=lambda d: str(d.get(order_by, "")), reverse=descending)
        return docs[:limit]


# ─── HTTP (httpx) ─────────────────────────────────────────────────────────────

class HttpRemoteMirror(RemoteMirror):
    """Spiegel über eine schlanke REST-API.

    Endpunkte (relativ zu base_url):
      GET/PUT/PATCH /documents/{collection}/{key}
      POST          /collections/{collection}          → {"id": "..."}
      GET           /collections/{collection}?order_by=&direction=&limit=
    """

    def __init__(self, base_url: str, timeout_seconds: float = 5.0,
                 api_key: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=headers,
            transport=transport,
        )

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            if response.status_code != 404:
                response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise RemoteMirrorError(f"Zeitüberschreitung: {method} {url}") from e
        except httpx.HTTPStatusError as e:
            raise RemoteMirrorError(
                f"HTTP {e.response.status_code}: {method} {url}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteMirrorError(f"Verbindungsfehler: {method} {url}: {e}") from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteMirrorError(f"Ungültige JSON-Antwort von {response.url}") from e

    async def get(self, collection: str, key: str) -> Optional[dict]:
        response = await self._request("GET", f"/documents/{collection}/{key}")
        if response.status_code == 404:
            return None
        data = self._json(response)
        if not isinstance(data, dict):
            raise RemoteMirrorError(f"Dokument {collection}/{key} ist kein Objekt")
        return data

    async def set(self, collection: str, key: str, document: dict,
                  merge: bool = False) -> None:
        method = "PATCH" if merge else "PUT"
        response = await self._request(method, f"/documents/{collection}/{key}",
                                       json=document)
        if response.status_code == 404:
            raise RemoteMirrorError(f"Sammlung {collection} unbekannt")

    async def append(self, collection: str, document: dict) -> str:
        response = await self._request("POST", f"/collections/{collection}",
                                       json=document)
        if response.status_code == 404:
            raise RemoteMirrorError(f"Sammlung {collection} unbekannt")
        data = self._json(response)
        if not isinstance(data, dict) or "id" not in data:
            raise RemoteMirrorError("Antwort enthält keine Dokument-ID")
        return str(data["id"])

    async def query(self, collection: str, order_by: str,
                    descending: bool = True, limit: int = 10) -> list[dict]:
        params = {
            "order_by": order_by,
            "direction": "desc" if descending else "asc",
            "limit": limit,
        }
        response = await self._request("GET", f"/collections/{collection}",
                                       params=params)
        if response.status_code == 404:
            return []
        data = self._json(response)
        if not isinstance(data, list):
            raise RemoteMirrorError(f"Abfrage {collection} lieferte keine Liste")
        return data

    async def close(self) -> None:
        await self._client.aclose()
