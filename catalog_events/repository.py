# Read side of the catalog/app-settings store. The pipeline only ever calls the
# query methods; the add/upsert helpers exist for seeding and tests.
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .errors import RepositoryError


def _now():
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class CatalogRecord:
    catalog_id: str
    store_id: str
    pixel_id: Optional[str] = None
    name: str = ""
    enabled: bool = True
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class StoreSettings:
    store_id: str
    access_token: Optional[str] = None
    test_event_code: Optional[str] = None


class CatalogRepository:
    """Interface the mapping resolver and ownership validator are given.

    Implementations raise RepositoryError on lookup failure.
    """

    def latest_catalog_for_pixel(self, store_id: str, pixel_id: str) -> Optional[CatalogRecord]:
        raise NotImplementedError

    def get_catalog(self, catalog_id: str) -> Optional[CatalogRecord]:
        raise NotImplementedError

    def get_store_settings(self, store_id: str) -> Optional[StoreSettings]:
        raise NotImplementedError


class InMemoryCatalogRepository(CatalogRepository):
    def __init__(self, catalogs: Optional[List[CatalogRecord]] = None,
                 stores: Optional[List[StoreSettings]] = None):
        self._lock = threading.Lock()
        self._catalogs: Dict[str, CatalogRecord] = {}
        self._stores: Dict[str, StoreSettings] = {}
        for c in catalogs or []:
            self.add_catalog(c)
        for s in stores or []:
            self.upsert_store(s)

    # ---- writes (seeding only) ----
    def add_catalog(self, record: CatalogRecord) -> None:
        with self._lock:
            self._catalogs[record.catalog_id] = record

    def upsert_store(self, settings: StoreSettings) -> None:
        with self._lock:
            self._stores[settings.store_id] = settings

    # ---- queries ----
    def latest_catalog_for_pixel(self, store_id, pixel_id):
        with self._lock:
            rows = [c for c in self._catalogs.values()
                    if c.store_id == store_id and c.pixel_id == pixel_id and c.enabled]
        if not rows:
            return None
        return max(rows, key=lambda c: c.created_at)

    def get_catalog(self, catalog_id):
        with self._lock:
            return self._catalogs.get(catalog_id)

    def get_store_settings(self, store_id):
        with self._lock:
            return self._stores.get(store_id)

    # ---- seed file ----
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryCatalogRepository":
        catalogs = []
        for row in data.get("catalogs") or []:
            created = row.get("created_at")
            catalogs.append(CatalogRecord(
                catalog_id=str(row["catalog_id"]),
                store_id=str(row["store_id"]),
                pixel_id=str(row["pixel_id"]) if row.get("pixel_id") else None,
                name=row.get("name", ""),
                enabled=bool(row.get("enabled", True)),
                created_at=datetime.fromisoformat(created.replace("Z", "+00:00")) if created else _now(),
            ))
        stores = [
            StoreSettings(
                store_id=str(row["store_id"]),
                access_token=row.get("access_token") or None,
                test_event_code=row.get("test_event_code") or None,
            )
            for row in data.get("stores") or []
        ]
        return cls(catalogs, stores)

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryCatalogRepository":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise RepositoryError(f"cannot load catalog seed {path!r}: {e}") from e
        if not isinstance(data, dict):
            raise RepositoryError(f"catalog seed {path!r}: bad shape")
        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise RepositoryError(f"catalog seed {path!r}: {e}") from e
