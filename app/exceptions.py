"""
Domain errors raised by the order / dispatch services.

Routes do not catch these; the handler registered in app.main turns them
into the same ``{"detail": ...}`` body that HTTPException produces.
"""


class OrderServiceError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(OrderServiceError):
    status_code = 400
    default_detail = "Invalid request"


class NotFoundError(OrderServiceError):
    status_code = 404
    default_detail = "Not found"


class ForbiddenError(OrderServiceError):
    status_code = 403
    default_detail = "Forbidden"


class ConflictError(OrderServiceError):
    status_code = 409
    default_detail = "Order was modified by another request"


class UnavailableError(OrderServiceError):
    status_code = 503
    default_detail = "Service temporarily unavailable"


class InternalError(OrderServiceError):
    pass


class EmptyCartError(ValidationError):
    default_detail = "Cart is empty. Add items to cart before placing order."


class InvalidTransitionError(ConflictError):
    status_code = 400
    default_detail = "Invalid status transition"


class RestaurantUnavailableError(UnavailableError):
    status_code = 400
    default_detail = "This restaurant is currently not accepting orders"
