"""User-recoverable failures surfaced by the catalog portal."""


class PortalError(Exception):
    """Base class for every failure the views know how to render."""


class NotFoundError(PortalError):
    def __init__(self, entry_id: str = ""):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}" if entry_id else "Entry not found")


class BackendUnavailableError(PortalError):
    """The document store (or its driver) failed for this call."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation}")


class UnresolvableURLError(PortalError):
    def __init__(self, url: str):
        self.url = url
        super().__init__("Invalid video source")


class ValidationError(PortalError):
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)
