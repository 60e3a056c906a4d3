"""
Custom exceptions for the application.

Not-found conditions are not exceptions for delete/update/toggle; those
operations return None or False instead. These classes cover programming
errors and the few operations that refuse a request outright.
"""


class ChatterHubError(Exception):
    """Base class for ChatterHub errors."""
    def __init__(self, message="ChatterHub error"):
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return self.message


class NotFoundError(ChatterHubError):
    """Raised by operations that cannot proceed without their source record."""
    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class FolderCycleError(ChatterHubError):
    """Raised when a move would make a folder its own ancestor."""
    def __init__(self, message="Cannot move folder into its own subfolder"):
        super().__init__(message)


class UnknownCollectionError(ChatterHubError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown collection: {name}")


class UnknownIndexError(ChatterHubError):
    def __init__(self, collection: str, field: str):
        self.collection = collection
        self.field = field
        super().__init__(f"Field '{field}' is not indexed on collection '{collection}'")


class ValidationError(ChatterHubError):
    """Exception raised when input validation fails."""
    pass
