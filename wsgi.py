# Production entry for the catalog event ingest service (gunicorn wsgi:app).
# Storefront traffic to /ingest and the inspection endpoints sit behind optional
# basic auth; health and version probes stay open for the load balancer.
import os

from app import create_app
from authwrap import BasicAuthMiddleware
from catalog_events.config import truthy


def _exempt_paths(raw: str):
    return [p.strip() for p in raw.split(",") if p.strip()]


app = BasicAuthMiddleware(
    create_app(),
    enabled=truthy(os.getenv("BASIC_AUTH_ENABLED", "false")),
    username=os.getenv("BASIC_AUTH_USERNAME", ""),
    password=os.getenv("BASIC_AUTH_PASSWORD", ""),
    realm=os.getenv("BASIC_AUTH_REALM", "catalog-events"),
    exempt_paths=_exempt_paths(os.getenv("BASIC_AUTH_EXEMPT", "/healthz,/version")),
)
