import logging
from typing import Iterable, Optional

from .classifier import is_valid_product_id
from .models import ValidationResult
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


def enforce_absolute_rules(catalog_store_id: Optional[str], event_store_id: str) -> ValidationResult:
    """Store A event -> store B catalog is never allowed, whatever the ids look like."""
    if not event_store_id or catalog_store_id != event_store_id:
        return ValidationResult(
            valid=False,
            error=f"Store mismatch: event from {event_store_id} cannot use catalog from {catalog_store_id}",
        )
    return ValidationResult(valid=True)


def validate_catalog_ownership(repo: CatalogRepository, store_id: str, catalog_id: str,
                               content_ids: Iterable[str]) -> ValidationResult:
    try:
        catalog = repo.get_catalog(catalog_id) if catalog_id else None
    except Exception:
        logger.exception("catalog ownership lookup failed", extra={"store_id": store_id, "catalog_id": catalog_id})
        return ValidationResult(valid=False, error="Validation failed")

    if catalog is None or not catalog.enabled:
        return ValidationResult(valid=False, error="Catalog not found or not enabled")

    rules = enforce_absolute_rules(catalog.store_id, store_id)
    if not rules.valid:
        logger.warning("cross-store catalog rejected",
                       extra={"store_id": store_id, "catalog_id": catalog_id, "owner": catalog.store_id})
        return rules

    content_ids = list(content_ids or [])
    if not content_ids:
        return ValidationResult(valid=False, error="No product IDs")
    invalid = [str(pid) for pid in content_ids if not is_valid_product_id(pid)]
    if invalid:
        return ValidationResult(valid=False, error=f"Invalid product IDs: {', '.join(invalid)}")

    return ValidationResult(valid=True)
