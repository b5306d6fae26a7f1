#!/usr/bin/env python3
# Storefront event ingest: /ingest runs the catalog pipeline and forwards to CAPI,
# /metrics/pixel feeds the dedup meter from the browser side, audit + health endpoints.
import logging
import os
from typing import Optional

from flask import Flask, jsonify, request

from catalog_events import (
    APP_VERSION, AuditLog, CatalogEventPipeline, InMemoryCatalogRepository, RawEvent, Settings,
)
from catalog_events.audit import DedupMeter
from catalog_events.config import truthy
from catalog_events.errors import RepositoryError

logger = logging.getLogger(__name__)


def _load_repository(settings: Settings) -> InMemoryCatalogRepository:
    if not settings.catalog_seed_path:
        return InMemoryCatalogRepository()
    try:
        return InMemoryCatalogRepository.from_json_file(settings.catalog_seed_path)
    except RepositoryError:
        logger.exception("catalog seed not loaded; starting with an empty repository")
        return InMemoryCatalogRepository()


def build_pipeline(settings: Optional[Settings] = None) -> CatalogEventPipeline:
    settings = settings or Settings.from_env()
    audit = AuditLog(settings.audit_log_max, settings.audit_sink_path)
    return CatalogEventPipeline(_load_repository(settings), audit=audit, settings=settings)


def _json_body():
    try:
        body = request.get_json(force=True)
    except Exception:
        return None
    return body if isinstance(body, dict) else None


def create_app(pipeline: Optional[CatalogEventPipeline] = None) -> Flask:
    app = Flask(__name__)
    pipeline = pipeline or build_pipeline()
    dedup = DedupMeter()
    app.config["PIPELINE"] = pipeline
    app.config["DEDUP"] = dedup

    # -------------------- /ingest (storefront → pipeline → CAPI) --------------------
    @app.post("/ingest")
    def ingest():
        """Accept one storefront event; ?dry_run=1 builds the payload without dispatching."""
        body = _json_body()
        if body is None:
            return {"ok": False, "error": "invalid JSON"}, 400
        event = RawEvent.from_dict(body)
        if not (event.store_id and event.pixel_id and event.event_name):
            return {"ok": False, "error": "store_id, pixel_id and event_name are required"}, 400

        if truthy(request.args.get("dry_run")):
            result = pipeline.process(event)
            return jsonify({"ok": True, **result.to_dict()})

        report = pipeline.deliver_event(event)
        dedup.observe("capi", report.result.event_id)
        return jsonify({"ok": report.outcome is not None, **report.to_dict()})

    # -------------------- Metrics endpoints --------------------
    @app.post("/metrics/pixel")
    def metrics_pixel():
        """Browser pings here when it fires a Pixel event so we can power the dedup meter."""
        body = _json_body()
        if body is None:
            return {"ok": False}, 400
        dedup.observe("pixel", body.get("event_id"))
        return {"ok": True}

    @app.get("/metrics")
    def metrics():
        counts = pipeline.audit.counts()
        return jsonify({
            "processed": counts.get("processed", 0),
            "catalog": counts.get("catalog", 0),
            "plain": counts.get("plain", 0),
            "errors": counts.get("errors", 0),
            "outcomes": {k[len("outcome_"):]: v for k, v in counts.items() if k.startswith("outcome_")},
            "dedup": dedup.summary(),
        })

    @app.get("/api/events")
    def api_events():
        try:
            limit = max(1, min(800, int(request.args.get("limit", 200))))
        except ValueError:
            limit = 200
        items = pipeline.audit.entries(
            store_id=request.args.get("store") or None,
            event_name=request.args.get("type") or None,
            outcome=request.args.get("outcome") or None,
            limit=limit,
        )
        return jsonify({"items": items})

    # -------------------- Health & version --------------------
    @app.get("/healthz")
    def healthz():
        msg = []
        if not pipeline.settings.catalog_seed_path:
            msg.append("CATALOG_SEED_PATH missing")
        return jsonify({"ok": True, "warnings": msg})

    @app.get("/version")
    def version():
        return jsonify({"version": APP_VERSION})

    return app


# -------------------- Entry --------------------
if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.getenv("PORT", "5000"))
    create_app().run(host="0.0.0.0", port=port, debug=truthy(os.getenv("FLASK_DEBUG")))
