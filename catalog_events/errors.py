from enum import Enum


class FailureCategory(str, Enum):
    MAPPING_ABSENT = "mapping_absent"
    CLASSIFICATION_INELIGIBLE = "classification_ineligible"
    OWNERSHIP_VIOLATION = "ownership_violation"
    DISPATCH_REJECTED = "dispatch_rejected"
    DISPATCH_TRANSIENT_FAILURE = "dispatch_transient_failure"
    DUPLICATE_DELIVERY = "duplicate_delivery"
    CATALOG_MISMATCH = "catalog_mismatch"
    DELIVERED = "delivered"
    UNKNOWN = "unknown"


class CatalogEventsError(Exception):
    pass


class RepositoryError(CatalogEventsError):
    """Lookup against the catalog/app-settings store failed."""


class DispatchError(CatalogEventsError):
    pass


class MissingCredentialError(DispatchError):
    def __init__(self, ref: str):
        super().__init__(f"no CAPI access token configured for {ref!r}")
        self.ref = ref
