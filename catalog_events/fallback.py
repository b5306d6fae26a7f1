import logging
from typing import Any, Dict, Optional

from .models import Classification, EventNameLike, event_name_str
from .payload import build_fallback_payload

logger = logging.getLogger(__name__)


def apply_fallback_strategy(event_name: EventNameLike, classification: Classification, reason: str,
                            custom_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Downgrade to a plain conversion: DPA is skipped, value/currency still count for optimization."""
    base = custom_data if isinstance(custom_data, dict) else {}
    value = classification.total_value if classification.total_value is not None else base.get("value")
    currency = classification.currency or base.get("currency")
    logger.info(
        "catalog fallback for %s: %s", event_name_str(event_name), reason,
        extra={"event_name": event_name_str(event_name), "reason": reason},
    )
    return build_fallback_payload(base, value, currency)
