"""Gemeinsame Basis für alle gespeicherten Datenmodelle (Pydantic v2).

Gespeichert wird im JSON-Format der Web-App (camelCase-Schlüssel wie
"timeSlots", "subjectId"). In Python gelten die snake_case-Attributnamen;
beim Einlesen werden beide Schreibweisen akzeptiert.
"""

import math
import random
import string
import time

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_ID_ALPHABET = string.ascii_lowercase + string.digits


class StoredModel(BaseModel):
    """Basisklasse: camelCase-Aliase, Namen ebenfalls erlaubt."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Serialisiert im Speicherformat (camelCase, JSON-kompatibel)."""
        return self.model_dump(mode="json", by_alias=True)


def new_id(prefix: str) -> str:
    """Erzeugt eine ID der Form "<prefix>_<epoch-ms>_<9 Zeichen base36>"."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def round_half_up(value: float) -> int:
    """Kaufmännisch runden (x.5 aufwärts), anders als round()."""
    return math.floor(value + 0.5)
