# storefront/domain/errors.py


class StoreError(Exception):
    """Base for errors a caller can act on. `status_code` is the HTTP status the API answers with."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    status_code = 400


class Unauthorized(StoreError):
    status_code = 401


class Forbidden(StoreError):
    status_code = 403


class NotFound(StoreError):
    status_code = 404


class EmptyCart(StoreError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class ProductUnavailable(StoreError):
    status_code = 400


class InsufficientStock(StoreError):
    status_code = 400


class InvalidTransition(StoreError):
    status_code = 400


class PaymentVerificationFailed(StoreError):
    status_code = 400


class InternalError(StoreError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
