# -------------------- Audit log & storage --------------------
import json
import logging
import threading
from collections import defaultdict, deque
from typing import Any, Dict, List, Optional

from .models import AuditEntry

logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only record of every pipeline decision: bounded ring + optional NDJSON file."""

    def __init__(self, maxlen: int = 800, sink_path: str = ""):
        self._lock = threading.Lock()
        self._entries: deque = deque(maxlen=maxlen)
        self._counts: Dict[str, int] = defaultdict(int)
        self.sink_path = sink_path

    def record_audit_entry(self, entry: AuditEntry) -> None:
        row = entry.to_dict()
        with self._lock:
            self._entries.appendleft(row)
            self._counts["processed"] += 1
            self._counts[f"outcome_{entry.outcome}"] += 1
            self._counts["catalog" if entry.is_catalog_event else "plain"] += 1
            if entry.error:
                self._counts["errors"] += 1
        self._ndjson_append(row)

    def _ndjson_append(self, row: Dict[str, Any]) -> None:
        if not self.sink_path:
            return
        try:
            with open(self.sink_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(row, ensure_ascii=False, default=str) + "\n")
        except OSError:
            logger.exception("audit sink write failed", extra={"sink_path": self.sink_path})

    # read side for the inspection endpoints; the pipeline never reads its own log
    def entries(self, store_id: Optional[str] = None, event_name: Optional[str] = None,
                outcome: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        with self._lock:
            items = list(self._entries)
        out = []
        for e in items:
            if store_id and e.get("store_id") != store_id: continue
            if event_name and e.get("event_name") != event_name: continue
            if outcome and e.get("outcome") != outcome: continue
            out.append(e)
        return out[:max(0, limit)]

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)


class DedupMeter:
    """Browser vs server event_id overlap; matched ids are the ones Meta collapses to one record."""

    CHANNELS = ("pixel", "capi")

    def __init__(self, maxlen: int = 5000):
        self._lock = threading.Lock()
        self._ids = {ch: set() for ch in self.CHANNELS}
        self._order = {ch: deque() for ch in self.CHANNELS}
        self.maxlen = maxlen

    def observe(self, channel: str, event_id: Optional[str]) -> None:
        if channel not in self._ids or not event_id:
            return
        with self._lock:
            ids, order = self._ids[channel], self._order[channel]
            if event_id in ids:
                return
            ids.add(event_id)
            order.append(event_id)
            while len(order) > self.maxlen:
                ids.discard(order.popleft())

    def summary(self) -> Dict[str, int]:
        with self._lock:
            common = self._ids["pixel"] & self._ids["capi"]
            return {
                "matched": len(common),
                "pixel_only": len(self._ids["pixel"] - common),
                "capi_only": len(self._ids["capi"] - common),
            }
