"""Domain errors raised by the scheduling and pause services.

Routers never catch these; ``app.main`` maps them onto HTTP responses so the same
services can be driven from the arq worker without an HTTP layer.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for delivery scheduling errors"""

    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(SchedulingError):
    """Malformed input, rejected before any write"""

    status_code = 400


class NotFound(SchedulingError):
    """Unknown category, subscription or pause record"""

    status_code = 404


class PolicyUnavailable(SchedulingError):
    """No stored policy and no built-in default for the category"""

    status_code = 503
