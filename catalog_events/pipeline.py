# Unified pipeline: one entry point for every storefront event, catalog or not.
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_incrementing

from .audit import AuditLog
from .capi import CapiClient, build_server_event
from .classifier import classify_event
from .config import Settings
from .dedup import generate_event_id
from .delivery import classify_delivery_outcome
from .errors import DispatchError, FailureCategory
from .fallback import apply_fallback_strategy
from .mapping import resolve_catalog_mapping
from .models import (
    AuditEntry, DeliveryAction, DeliveryOutcome, DispatchResponse, EventNameLike, ProcessResult, RawEvent,
    event_name_str, is_catalog_eligible, normalize_event_name,
)
from .payload import build_catalog_payload
from .repository import CatalogRepository, StoreSettings
from .validator import validate_catalog_ownership

logger = logging.getLogger(__name__)

CATALOG = "catalog"


def iso_to_unix(ts_iso: str) -> float:
    dt = datetime.fromisoformat(ts_iso.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def coerce_timestamp(ts: Any = None) -> float:
    """Unix seconds from epoch seconds, epoch millis or an ISO-8601 string; now only if unparsable."""
    if ts is None or ts == "":
        return time.time()
    try:
        x = float(ts)
    except (TypeError, ValueError):
        try:
            x = iso_to_unix(ts) if isinstance(ts, str) else math.nan
        except ValueError:
            x = math.nan
    if not math.isfinite(x) or x <= 0:
        logger.warning("unparsable event timestamp %r, using now", ts, extra={"timestamp": str(ts)})
        return time.time()
    return x / 1000.0 if x > 1e11 else x


def process_event_with_catalog(repo: CatalogRepository, store_id: str, pixel_id: str, event_name: EventNameLike,
                               products: Optional[Iterable] = None, currency: Optional[str] = None,
                               order_id: Optional[str] = None, custom_data: Optional[Dict[str, Any]] = None,
                               timestamp: Optional[float] = None, audit: Optional[AuditLog] = None) -> ProcessResult:
    """Resolve -> classify -> validate -> build -> event_id. Always returns a well-formed result."""
    name = normalize_event_name(event_name)
    base = dict(custom_data) if isinstance(custom_data, dict) else {}
    currency = currency or base.get("currency")
    if currency and not base.get("currency"):
        base["currency"] = currency
    products = list(products or [])
    event_id = generate_event_id(store_id, order_id, name, coerce_timestamp(timestamp))

    mapping = resolve_catalog_mapping(repo, store_id, pixel_id)
    catalog_id = mapping.catalog_id if mapping else None
    credential = mapping.credential if mapping else None
    classification = classify_event(name, products, currency, catalog_id)

    if not classification.is_catalog_event:
        if is_catalog_eligible(name) and products and catalog_id is None:
            path = FailureCategory.MAPPING_ABSENT.value
        else:
            path = FailureCategory.CLASSIFICATION_INELIGIBLE.value
        result = ProcessResult(
            is_catalog_event=False,
            custom_data=apply_fallback_strategy(name, classification, classification.reason or path, base),
            event_id=event_id,
            event_name=name,
            credential=credential,
            fallback_reason=classification.reason,
            path=path,
        )
    else:
        validation = validate_catalog_ownership(repo, store_id, classification.catalog_id, classification.content_ids)
        if not validation.valid:
            result = ProcessResult(
                is_catalog_event=False,
                custom_data=apply_fallback_strategy(name, classification, validation.error, base),
                event_id=event_id,
                event_name=name,
            credential=credential,
                fallback_reason=validation.error,
                path=FailureCategory.OWNERSHIP_VIOLATION.value,
            )
        else:
            result = ProcessResult(
                is_catalog_event=True,
                custom_data=build_catalog_payload(classification, base),
                event_id=event_id,
                event_name=name,
            credential=credential,
                catalog_id=classification.catalog_id,
                path=CATALOG,
            )

    if audit is not None:
        audit.record_audit_entry(AuditEntry(
            event_id=event_id,
            store_id=store_id,
            pixel_id=pixel_id,
            event_name=event_name_str(name),
            is_catalog_event=result.is_catalog_event,
            outcome=result.path,
            fallback_reason=result.fallback_reason,
            error=result.fallback_reason if result.path == FailureCategory.OWNERSHIP_VIOLATION.value else None,
        ))
    return result


@dataclass(frozen=True)
class DeliveryReport:
    result: ProcessResult
    outcome: Optional[DeliveryOutcome] = None
    response: Optional[DispatchResponse] = None
    attempts: int = 0
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.outcome is not None:
            return self.outcome.category
        return "skipped"

    def to_dict(self) -> Dict[str, Any]:
        out = self.result.to_dict()
        out.update({
            "status": self.status,
            "attempts": self.attempts,
            "action": self.outcome.action.value if self.outcome else None,
            "error": self.error,
        })
        return out


class CatalogEventPipeline:
    """Holds the collaborators (repository, CAPI client, audit sink) built once at process start."""

    def __init__(self, repo: CatalogRepository, audit: Optional[AuditLog] = None,
                 client: Optional[CapiClient] = None, settings: Optional[Settings] = None,
                 sleep=time.sleep):
        self.settings = settings or Settings.from_env()
        self.repo = repo
        self.audit = audit or AuditLog(self.settings.audit_log_max, self.settings.audit_sink_path)
        self.client = client or CapiClient(self.settings)
        self._sleep = sleep

    def process(self, event: RawEvent) -> ProcessResult:
        return process_event_with_catalog(
            self.repo, event.store_id, event.pixel_id, event.event_name,
            products=event.products, currency=event.currency, order_id=event.order_id,
            custom_data=event.custom_data, timestamp=event.timestamp, audit=self.audit,
        )

    def _store_settings(self, store_id: str) -> Optional[StoreSettings]:
        try:
            return self.repo.get_store_settings(store_id)
        except Exception:
            logger.exception("store settings lookup failed", extra={"store_id": store_id})
            return None

    def _dispatch(self, pixel_id, server_event, token: str, test_event_code: Optional[str]) -> DispatchResponse:
        return self.client.dispatch_conversion_event(
            pixel_id, [server_event], token, test_event_code=test_event_code,
        )

    def _retrying(self) -> Retrying:
        # same server event (and event_id) on every attempt; only transient outcomes are retried
        backoff = self.settings.capi_retry_backoff_seconds
        return Retrying(
            stop=stop_after_attempt(self.settings.capi_max_attempts),
            wait=wait_incrementing(start=backoff, increment=backoff),
            retry=retry_if_result(lambda sent: sent[1].should_retry),
            retry_error_callback=lambda state: state.outcome.result(),
            sleep=self._sleep,
        )

    def deliver_event(self, event: RawEvent) -> DeliveryReport:
        """Process, dispatch (retrying transient failures with the same event_id), classify, audit."""
        ts = coerce_timestamp(event.timestamp)
        result = process_event_with_catalog(
            self.repo, event.store_id, event.pixel_id, event.event_name,
            products=event.products, currency=event.currency, order_id=event.order_id,
            custom_data=event.custom_data, timestamp=ts,
        )

        # the resolved mapping's token wins; plain events fall back to the store's app settings
        settings = self._store_settings(event.store_id)
        token = result.credential or (settings.access_token if settings else None)
        test_event_code = settings.test_event_code if settings else None
        if not token or not event.pixel_id:
            report = DeliveryReport(result, error="no access token or pixel configured")
            self._audit(event, report)
            return report

        server_event = build_server_event(
            event_name_str(result.event_name), int(ts), result.event_id, result.custom_data,
            user_data=event.user_data, event_source_url=event.event_source_url,
        )

        attempts = 0

        def send():
            nonlocal attempts
            attempts += 1
            resp = self._dispatch(event.pixel_id, server_event, token, test_event_code)
            return resp, classify_delivery_outcome(resp.status_code, resp.body, result.event_id)

        outcome = response = None
        error = None
        try:
            response, outcome = self._retrying()(send)
        except DispatchError as e:
            error = str(e)
        except Exception as e:
            logger.exception("CAPI dispatch failed", extra={"event_id": result.event_id})
            error = str(e)
            outcome = DeliveryOutcome(DeliveryAction.LOG, False, FailureCategory.UNKNOWN.value)

        report = DeliveryReport(result, outcome=outcome, response=response, attempts=attempts, error=error)
        self._audit(event, report)
        return report

    def _audit(self, event: RawEvent, report: DeliveryReport) -> None:
        r = report.result
        error = report.error
        if r.path == FailureCategory.OWNERSHIP_VIOLATION.value:
            error = "; ".join(e for e in (r.fallback_reason, report.error) if e)
        self.audit.record_audit_entry(AuditEntry(
            event_id=r.event_id,
            store_id=event.store_id,
            pixel_id=event.pixel_id,
            event_name=event_name_str(r.event_name),
            is_catalog_event=r.is_catalog_event,
            outcome=report.status,
            external_response=report.response.body if report.response else None,
            error=error,
            attempts=report.attempts,
            fallback_reason=r.fallback_reason,
        ))
