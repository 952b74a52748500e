"""Error taxonomy for the catalog core.

Absent records on read paths are returned as ``None``; only the cases below
raise. ``BackendUnavailableError`` never reaches callers of the store: it is
raised during capability detection and absorbed into an inert backend.
"""


class CatalogError(Exception):
    """Base exception for all catalog failures."""

    code = "CATALOG_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateKeyError(CatalogError):
    """A record with the same id already exists."""

    code = "DUPLICATE_KEY"

    def __init__(self, product_id: str):
        super().__init__(f"product '{product_id}' already exists")
        self.product_id = product_id


class NotFoundError(CatalogError):
    """A mutation required an existing record (strict update only)."""

    code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} '{resource_id}' not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class BackendUnavailableError(CatalogError):
    """Local storage cannot be used in this process."""

    code = "BACKEND_UNAVAILABLE"

    def __init__(self, reason: str):
        super().__init__(f"storage unavailable: {reason}")
        self.reason = reason


class StorageError(CatalogError):
    """The database driver failed while running an operation."""

    code = "STORAGE_ERROR"

    def __init__(self, operation: str, message: str):
        super().__init__(f"storage {operation} failed: {message}")
        self.operation = operation
