import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    Classification, EventNameLike, ProductLineItem, event_name_str, is_catalog_eligible,
)

logger = logging.getLogger(__name__)

# product ids the storefront script emits when a variant lookup failed
PLACEHOLDER_IDS = frozenset({"", "undefined", "null", "none"})


def is_valid_product_id(pid: Any) -> bool:
    if pid is None:
        return False
    return str(pid).strip().lower() not in PLACEHOLDER_IDS


def _num(v, default: float) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        return default
    return x if math.isfinite(x) else default


def _as_item(p) -> Optional[ProductLineItem]:
    if isinstance(p, ProductLineItem):
        return p
    if isinstance(p, dict):
        return ProductLineItem.from_dict(p)
    return None


def build_contents(products: Iterable) -> List[Dict[str, Any]]:
    contents = []
    for p in products or []:
        item = _as_item(p)
        if item is None or not is_valid_product_id(item.id):
            continue
        qty = _num(item.quantity, 1.0) or 1.0
        contents.append({
            "id": str(item.id).strip(),
            "quantity": int(qty) if qty == int(qty) else qty,
            "item_price": _num(item.unit_price, 0.0),
        })
    return contents


def contents_total(contents) -> float:
    return sum(c["quantity"] * c["item_price"] for c in contents or [])


def _ineligible(event_name, reason: str) -> Classification:
    logger.debug("not a catalog event", extra={"event_name": event_name_str(event_name), "reason": reason})
    return Classification(is_catalog_event=False, reason=reason)


def classify_event(event_name: EventNameLike, products, currency: Optional[str],
                   catalog_id: Optional[str]) -> Classification:
    """Decide whether an event may carry catalog fields. Never raises."""
    if not is_catalog_eligible(event_name):
        return _ineligible(event_name, "event not catalog-eligible")
    if not products:
        return _ineligible(event_name, "no products")
    if not catalog_id:
        return _ineligible(event_name, "no catalog mapped to pixel")
    if not currency:
        return _ineligible(event_name, "no currency")

    contents = build_contents(products)
    if not contents:
        return _ineligible(event_name, "no valid product ids")

    return Classification(
        is_catalog_event=True,
        catalog_id=catalog_id,
        content_ids=[c["id"] for c in contents],
        contents=contents,
        total_value=contents_total(contents),
        currency=str(currency),
    )
