class TripLinkError(RuntimeError):
    """Manual override failure surfaced to the caller. No state was changed."""

    status = 400
    code = "failed-precondition"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class UnauthenticatedError(TripLinkError):
    status = 401
    code = "unauthenticated"


class InvalidArgumentError(TripLinkError):
    status = 400
    code = "invalid-argument"


class NotFoundError(TripLinkError):
    status = 404
    code = "not-found"


class PermissionDeniedError(TripLinkError):
    status = 403
    code = "permission-denied"
