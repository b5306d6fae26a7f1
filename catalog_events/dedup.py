import hashlib
import math
from typing import Optional

from .models import EventNameLike, event_name_str, normalize_event_name

EVENT_ID_LENGTH = 32
NO_ORDER = "no-order"


def generate_event_id(store_id: str, order_id: Optional[str], event_name: EventNameLike,
                      timestamp: Optional[float] = None) -> str:
    """Same event_id for the browser and server copy of one conversion.

    timestamp is unix seconds; flooring to the second is the dedup window.
    Collision-resistant identifier only, not a security boundary.
    """
    parts = [
        str(store_id or ""),
        str(order_id) if order_id else NO_ORDER,
        event_name_str(normalize_event_name(event_name)),
    ]
    if timestamp is not None:
        parts.append(str(int(math.floor(float(timestamp)))))
    raw = "_".join(p for p in parts if p)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:EVENT_ID_LENGTH]
