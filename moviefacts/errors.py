"""
Service Errors

Every failure the services can report is a ServiceError subclass carrying
the HTTP status and a short message that is safe to show to the user.
main.py registers one exception handler that turns them into JSON responses,
so routes and services raise instead of building error responses by hand.
"""


class ServiceError(Exception):
    """Base class for failures reported to the client."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class InvalidInput(ServiceError):
    status_code = 400
    message = "Invalid request"


class Unauthenticated(ServiceError):
    status_code = 401
    message = "Unauthorized"


class NotFound(ServiceError):
    status_code = 404
    message = "User not found"


class QuotaExceeded(ServiceError):
    """Daily fact limit reached. Always reports zero remaining calls."""

    status_code = 429

    def __init__(self, limit: int):
        self.limit = limit
        self.remaining_calls = 0
        super().__init__(f"Daily limit of {limit} movie facts reached. Try again tomorrow!")

    def to_dict(self) -> dict:
        return {"message": self.message, "remainingCalls": self.remaining_calls}


class GenerationFailed(ServiceError):
    status_code = 500
    message = "Failed to generate movie fact"


class UpstreamFailure(GenerationFailed):
    """The text generation provider failed or is not configured."""


class StoreFailure(ServiceError):
    status_code = 500
    message = "Internal server error"
