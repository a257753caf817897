class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ArrangementValidationError(AppError):
    """Raised when an arrangement request or local plan is incomplete or invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ArrangementConflictError(AppError):
    """Raised when a booking collides with existing occupancy or capacity rules."""
    def __init__(self, message: str, details: dict = None, status_code: int = 409):
        super().__init__(message, status_code=status_code, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class TransientError(AppError):
    """Raised when the store cannot be reached or replies with something unreadable."""
    def __init__(self, message: str = "Store temporarily unavailable", details: dict = None):
        super().__init__(message, status_code=503, details=details)
