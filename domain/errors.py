from typing import Optional


class AppError(Exception):
    status_code = 500
    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404
    kind = "not_found"


class MissingPreconditionError(AppError):
    """Rejected before any external call was made."""
    status_code = 400
    kind = "missing_precondition"


class StateConflictError(AppError):
    status_code = 409
    kind = "state_conflict"

    def __init__(self, message: str, current_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status


class LlmTransportError(AppError):
    status_code = 502
    kind = "transport"


class LlmResponseError(AppError):
    status_code = 502
    kind = "validation"


class RenderError(AppError):
    status_code = 500
    kind = "render"
