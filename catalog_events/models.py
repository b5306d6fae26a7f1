# Value objects for the catalog event pipeline + the single event-name synonym table.
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


# -------------------- Event names --------------------
class EventName(str, Enum):
    PAGE_VIEW = "PageView"
    VIEW_CONTENT = "ViewContent"
    ADD_TO_CART = "AddToCart"
    INITIATE_CHECKOUT = "InitiateCheckout"
    PURCHASE = "Purchase"
    ADD_PAYMENT_INFO = "AddPaymentInfo"
    LEAD = "Lead"
    CONTACT = "Contact"
    SEARCH = "Search"


EVENT_NAME_SYNONYMS: Dict[EventName, Tuple[str, ...]] = {
    EventName.PAGE_VIEW:         ("pageview", "page_view", "PageView"),
    EventName.VIEW_CONTENT:      ("viewContent", "view_content", "product_view", "ViewContent"),
    EventName.ADD_TO_CART:       ("addToCart", "add_to_cart", "AddToCart"),
    EventName.INITIATE_CHECKOUT: ("initiateCheckout", "initiate_checkout", "begin_checkout", "InitiateCheckout"),
    EventName.PURCHASE:          ("purchase", "Purchase"),
    EventName.ADD_PAYMENT_INFO:  ("addPaymentInfo", "add_payment_info", "AddPaymentInfo"),
    EventName.LEAD:              ("lead", "Lead"),
    EventName.CONTACT:           ("contact", "Contact"),
    EventName.SEARCH:            ("search", "Search"),
}

_SYNONYM_LOOKUP: Dict[str, EventName] = {
    alias: name for name, aliases in EVENT_NAME_SYNONYMS.items() for alias in aliases
}

CATALOG_ELIGIBLE_EVENTS = frozenset({
    EventName.VIEW_CONTENT,
    EventName.ADD_TO_CART,
    EventName.INITIATE_CHECKOUT,
    EventName.PURCHASE,
})

EventNameLike = Union[EventName, str]


def normalize_event_name(name: EventNameLike) -> EventNameLike:
    """Map a storefront spelling onto EventName; unknown names pass through as custom events."""
    if isinstance(name, EventName):
        return name
    raw = str(name).strip() if name is not None else ""
    return _SYNONYM_LOOKUP.get(raw, raw)


def event_name_str(name: EventNameLike) -> str:
    return name.value if isinstance(name, EventName) else str(name)


def is_catalog_eligible(name: EventNameLike) -> bool:
    return normalize_event_name(name) in CATALOG_ELIGIBLE_EVENTS


# -------------------- Inbound --------------------
def _first(d: Dict[str, Any], *keys):
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return None


@dataclass(frozen=True)
class ProductLineItem:
    id: Any
    quantity: Any = 1
    unit_price: Any = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProductLineItem":
        return cls(
            id=_first(d, "id", "product_id", "variant_id"),
            quantity=_first(d, "quantity", "qty"),
            unit_price=_first(d, "unit_price", "price", "item_price"),
        )


@dataclass(frozen=True)
class RawEvent:
    store_id: str
    pixel_id: str
    event_name: EventNameLike
    products: Tuple[ProductLineItem, ...] = ()
    currency: Optional[str] = None
    order_id: Optional[str] = None
    custom_data: Dict[str, Any] = field(default_factory=dict)
    event_source_url: Optional[str] = None
    user_data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[float] = None

    @classmethod
    def from_dict(cls, body: Dict[str, Any]) -> "RawEvent":
        products = body.get("products") or []
        if not isinstance(products, (list, tuple)):
            products = []
        user_data = body.get("user_data") or {}
        custom = body.get("custom_data") or body.get("customData") or {}
        if not isinstance(custom, dict):
            custom = {}
        return cls(
            store_id=str(_first(body, "store_id", "storeId") or ""),
            pixel_id=str(_first(body, "pixel_id", "pixelId") or ""),
            event_name=normalize_event_name(_first(body, "event_name", "eventName") or ""),
            products=tuple(ProductLineItem.from_dict(p) for p in products if isinstance(p, dict)),
            currency=_first(body, "currency") or custom.get("currency"),
            order_id=_first(body, "order_id", "orderId"),
            custom_data=dict(custom),
            event_source_url=_first(body, "event_source_url", "url"),
            user_data=dict(user_data) if isinstance(user_data, dict) else {},
            timestamp=_first(body, "timestamp", "event_time"),
        )


# -------------------- Derived --------------------
@dataclass(frozen=True)
class CatalogMapping:
    pixel_id: str
    catalog_id: str
    credential: str


@dataclass(frozen=True)
class Classification:
    is_catalog_event: bool
    catalog_id: Optional[str] = None
    content_ids: Optional[List[str]] = None
    contents: Optional[List[Dict[str, Any]]] = None
    total_value: Optional[float] = None
    currency: Optional[str] = None
    reason: Optional[str] = None


NOT_CATALOG = Classification(is_catalog_event=False)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ProcessResult:
    is_catalog_event: bool
    custom_data: Dict[str, Any]
    event_id: str
    event_name: EventNameLike
    catalog_id: Optional[str] = None
    fallback_reason: Optional[str] = None
    path: str = "catalog"
    # token from the resolved mapping; never serialized
    credential: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "isCatalogEvent": self.is_catalog_event,
            "customData": self.custom_data,
            "eventId": self.event_id,
        }
        if self.catalog_id:
            out["catalogId"] = self.catalog_id
        return out


# -------------------- Delivery --------------------
class DeliveryAction(str, Enum):
    DROP = "drop"
    RETRY = "retry"
    LOG = "log"


@dataclass(frozen=True)
class DispatchResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)
    timed_out: bool = False


@dataclass(frozen=True)
class DeliveryOutcome:
    action: DeliveryAction
    should_retry: bool
    category: str


@dataclass(frozen=True)
class AuditEntry:
    event_id: str
    store_id: str
    event_name: str
    is_catalog_event: bool
    outcome: str
    pixel_id: Optional[str] = None
    external_response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    fallback_reason: Optional[str] = None
    attempts: int = 0
    logged_at: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "store_id": self.store_id,
            "pixel_id": self.pixel_id,
            "event_name": self.event_name,
            "is_catalog_event": self.is_catalog_event,
            "outcome": self.outcome,
            "external_response": self.external_response,
            "error": self.error,
            "fallback_reason": self.fallback_reason,
            "attempts": self.attempts,
            "logged_at": self.logged_at,
        }
