"""Static catalogs consumed by the risk engine."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import TypeAdapter, ValidationError

from .errors import CatalogError, UnknownKitError
from .schemas import TestingKit


DEFAULT_CATALOG_PATH = Path(__file__).with_name("testing_kits.json")

SYMPTOM_SEVERITY: Mapping[str, float] = MappingProxyType(
    {
        "Diarrhea": 1.2,
        "Vomiting": 1.3,
        "Fever": 1.4,
        "Abdominal pain": 1.1,
        "Skin rashes": 1.15,
        "Other": 1.1,
    }
)

SYMPTOM_OPTIONS: tuple[str, ...] = tuple(SYMPTOM_SEVERITY)

_KITS_ADAPTER = TypeAdapter(list[TestingKit])


class KitCatalog:
    """Read-only lookup of testing kits by name."""

    def __init__(self, kits: list[TestingKit] | tuple[TestingKit, ...]):
        self._kits = tuple(kits)
        self._by_name = {kit.kit: kit for kit in self._kits}

    def __len__(self) -> int:
        return len(self._kits)

    def __iter__(self):
        return iter(self._kits)

    def names(self) -> list[str]:
        return [kit.kit for kit in self._kits]

    def get(self, name: str) -> TestingKit | None:
        return self._by_name.get(name)

    def require(self, name: str) -> TestingKit:
        kit = self._by_name.get(name)
        if kit is None:
            raise UnknownKitError(name)
        return kit


def load_catalog(path: str | Path | None = None) -> KitCatalog:
    """Load and validate a kit catalog JSON file.

    Falls back to the bundled catalog when no path is given.
    """

    source = Path(path) if path else DEFAULT_CATALOG_PATH
    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"cannot read kit catalog {source}: {exc}") from exc

    try:
        kits = _KITS_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise CatalogError(f"invalid kit catalog {source}: {exc.error_count()} error(s)") from exc

    return KitCatalog(kits)
