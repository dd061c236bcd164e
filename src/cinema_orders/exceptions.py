from fastapi import HTTPException


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def detail(self):
        return self.message

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail)


class ValidationError(BookingError):
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move order from {current.value} to {requested.value}"
        )


class SeatingFailedError(BookingError):
    status_code = 500

    def __init__(self, show_id: int, reason: str = ""):
        self.show_id = show_id
        self.reason = reason
        super().__init__("Show created but seating failed")

    @property
    def detail(self):
        return {"message": self.message, "show_id": self.show_id}


class TransportError(BookingError):
    status_code = 503
