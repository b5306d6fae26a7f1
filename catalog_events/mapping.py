import logging
from typing import Optional

from .models import CatalogMapping
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


def resolve_catalog_mapping(repo: CatalogRepository, store_id: str, pixel_id: str) -> Optional[CatalogMapping]:
    """Catalog bound to this store's pixel plus the token needed to dispatch, or None.

    Lookup failures count as "no mapping" so the event still goes out as a plain conversion.
    """
    if not store_id or not pixel_id:
        return None
    try:
        catalog = repo.latest_catalog_for_pixel(store_id, pixel_id)
        if catalog is None or catalog.store_id != store_id or not catalog.enabled:
            return None
        settings = repo.get_store_settings(store_id)
    except Exception:
        logger.exception("catalog mapping lookup failed", extra={"store_id": store_id, "pixel_id": pixel_id})
        return None

    if settings is None or not settings.access_token:
        logger.info("catalog bound but no access token", extra={"store_id": store_id, "pixel_id": pixel_id})
        return None
    return CatalogMapping(pixel_id=pixel_id, catalog_id=catalog.catalog_id, credential=settings.access_token)
