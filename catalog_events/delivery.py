import logging
from typing import Any, Dict, Optional

from .errors import FailureCategory
from .models import DeliveryAction, DeliveryOutcome

logger = logging.getLogger(__name__)

# Graph API: code 100 + "duplicate" in the message when event_id was already recorded
DUPLICATE_ERROR_CODE = 100


def _is_duplicate(body: Dict[str, Any]) -> bool:
    err = body.get("error")
    if not isinstance(err, dict):
        return False
    msg = str(err.get("message") or "") + " " + str(err.get("error_user_msg") or "")
    return err.get("code") == DUPLICATE_ERROR_CODE and "duplicate" in msg.lower()


def _events_received(body: Dict[str, Any]) -> Optional[int]:
    try:
        return int(body["events_received"])
    except (KeyError, TypeError, ValueError):
        return None


def classify_delivery_outcome(status_code: Optional[int], body: Any, event_id: str) -> DeliveryOutcome:
    body = body if isinstance(body, dict) else {}
    if status_code is None:
        status_code = 504  # timeout / no response

    if _is_duplicate(body):
        logger.info("event %s: duplicate, dropping", event_id, extra={"event_id": event_id})
        return DeliveryOutcome(DeliveryAction.DROP, False, FailureCategory.DUPLICATE_DELIVERY.value)

    if 200 <= status_code < 300:
        if _events_received(body) == 0:
            logger.error("event %s: %s but no events received - catalog mismatch", event_id, status_code,
                         extra={"event_id": event_id, "status_code": status_code})
            return DeliveryOutcome(DeliveryAction.LOG, False, FailureCategory.CATALOG_MISMATCH.value)
        return DeliveryOutcome(DeliveryAction.LOG, False, FailureCategory.DELIVERED.value)

    if 400 <= status_code < 500:
        logger.error("event %s: HTTP %s - dropping", event_id, status_code,
                     extra={"event_id": event_id, "status_code": status_code})
        return DeliveryOutcome(DeliveryAction.DROP, False, FailureCategory.DISPATCH_REJECTED.value)

    if status_code >= 500:
        logger.warning("event %s: HTTP %s - will retry", event_id, status_code,
                       extra={"event_id": event_id, "status_code": status_code})
        return DeliveryOutcome(DeliveryAction.RETRY, True, FailureCategory.DISPATCH_TRANSIENT_FAILURE.value)

    return DeliveryOutcome(DeliveryAction.LOG, False, FailureCategory.UNKNOWN.value)
