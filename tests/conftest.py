import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from catalog_events import (  # noqa: E402
    AuditLog, CatalogEventPipeline, CatalogRecord, InMemoryCatalogRepository, Settings, StoreSettings,
)
from catalog_events.models import DispatchResponse  # noqa: E402


class FakeCapiClient:
    """Stands in for CapiClient; replays scripted responses and records every call."""

    def __init__(self, responses=None, exc=None):
        self.responses = list(responses or [])
        self.exc = exc
        self.calls = []

    def dispatch_conversion_event(self, pixel_id, server_events, credential, test_event_code=None):
        self.calls.append({
            "pixel_id": pixel_id,
            "events": server_events,
            "credential": credential,
            "test_event_code": test_event_code,
        })
        if self.exc is not None:
            raise self.exc
        if self.responses:
            return self.responses.pop(0)
        return DispatchResponse(200, {"events_received": 1})


@pytest.fixture
def settings():
    return Settings(capi_max_attempts=3, capi_retry_backoff_seconds=0.0, audit_log_max=100)


@pytest.fixture
def repo():
    return InMemoryCatalogRepository(
        catalogs=[
            CatalogRecord("cat-A", "store-A", "px-A", name="A catalog",
                          created_at=datetime(2025, 1, 1, tzinfo=timezone.utc)),
            CatalogRecord("cat-B", "store-B", "px-B", name="B catalog"),
        ],
        stores=[
            StoreSettings("store-A", access_token="tok-A", test_event_code="TEST123"),
            StoreSettings("store-B", access_token="tok-B"),
            StoreSettings("store-C"),
        ],
    )


@pytest.fixture
def audit():
    return AuditLog(maxlen=100)


@pytest.fixture
def fake_client():
    return FakeCapiClient()


@pytest.fixture
def pipeline(repo, audit, fake_client, settings):
    return CatalogEventPipeline(repo, audit=audit, client=fake_client, settings=settings, sleep=lambda s: None)
