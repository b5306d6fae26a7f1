# custom_data builders. Both copy the caller's dict and never raise.
from typing import Any, Dict, Optional

from .models import Classification

# Meta infers the catalog from the pixel<->catalog link; an explicit id in event data is never sent.
CATALOG_ID_FIELDS = ("catalog_id", "product_catalog_id")
CATALOG_FIELDS = ("content_type", "content_ids", "contents", "num_items") + CATALOG_ID_FIELDS


def _base(custom_data) -> Dict[str, Any]:
    return dict(custom_data) if isinstance(custom_data, dict) else {}


def build_catalog_payload(classification: Classification, custom_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    cd = _base(custom_data)
    if not classification.is_catalog_event:
        return build_fallback_payload(cd, classification.total_value, classification.currency)
    for k in CATALOG_ID_FIELDS:
        cd.pop(k, None)
    contents = [dict(c) for c in classification.contents or []]
    cd.update({
        "content_type": "product",
        "content_ids": list(classification.content_ids or []),
        "contents": contents,
        "value": classification.total_value,
        "currency": classification.currency,
        "num_items": len(contents),
    })
    return cd


def build_fallback_payload(custom_data: Optional[Dict[str, Any]] = None, value: Any = None,
                           currency: Optional[str] = None) -> Dict[str, Any]:
    cd = _base(custom_data)
    for k in CATALOG_FIELDS:
        cd.pop(k, None)
    if value is not None:
        cd["value"] = value
    if currency:
        cd["currency"] = currency
    return cd
