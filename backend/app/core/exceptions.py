class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_content(self) -> dict:
        content: dict = {"message": self.message}
        if self.details:
            content["details"] = self.details
        return content


class ValidationError(AppError):
    """Raised when a request is malformed or violates a field rule."""
    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message, status_code=400)
        self.errors = errors or []

    def to_content(self) -> dict:
        content = super().to_content()
        if self.errors:
            content["errors"] = self.errors
        return content


class NotFoundError(AppError):
    """Raised when a tenant-scoped resource does not exist."""
    def __init__(self, resource_type: str, resource_id: str | None = None):
        details = {"resource": resource_type}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(f"{resource_type} not found", status_code=404, details=details)
        self.resource_type = resource_type


class ConflictError(AppError):
    """Raised when a write collides with existing data.

    ``conflict`` holds the serialized record that caused the rejection so the
    caller can display it.
    """
    def __init__(self, message: str, conflict: dict | None = None):
        super().__init__(message, status_code=409)
        self.conflict = conflict

    def to_content(self) -> dict:
        content = super().to_content()
        if self.conflict is not None:
            content["conflict"] = self.conflict
        return content


class InternalError(AppError):
    """Raised when an unexpected failure prevents a request from completing."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)
