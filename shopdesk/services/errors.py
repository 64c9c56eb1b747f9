# shopdesk/services/errors.py


class ShopError(Exception):
    """Base class for business-rule failures raised by the service layer."""


class ValidationError(ShopError):
    pass


class NotFoundError(ShopError):
    pass


class ConflictError(ShopError):
    pass


class AvailabilityError(ShopError):
    """A cart line references a phone that is not in stock or a product with too little stock."""

    def __init__(self, item_type, item_id: int, message: str):
        super().__init__(message)
        self.item_type = item_type
        self.item_id = item_id
