from .audit import AuditLog
from .capi import CapiClient
from .classifier import classify_event
from .config import APP_VERSION, Settings
from .dedup import generate_event_id
from .delivery import classify_delivery_outcome
from .fallback import apply_fallback_strategy
from .mapping import resolve_catalog_mapping
from .models import EventName, ProductLineItem, RawEvent, normalize_event_name
from .payload import build_catalog_payload, build_fallback_payload
from .pipeline import CatalogEventPipeline, DeliveryReport, process_event_with_catalog
from .repository import CatalogRecord, CatalogRepository, InMemoryCatalogRepository, StoreSettings
from .validator import enforce_absolute_rules, validate_catalog_ownership

__version__ = APP_VERSION
