class ServiceError(Exception):
    """Domain failure that maps onto an HTTP status; rendered as {"message": ...}."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSignature(ServiceError):
    status_code = 400

class NotEnoughSlots(ServiceError):
    status_code = 400

class TourNotFound(ServiceError):
    status_code = 404

class BookingNotFound(ServiceError):
    status_code = 404

class ReviewNotFound(ServiceError):
    status_code = 404

class Forbidden(ServiceError):
    status_code = 403

class InvalidTransition(ServiceError):
    status_code = 409

class DuplicateReview(ServiceError):
    status_code = 409

class UserNotFound(ServiceError):
    status_code = 404
