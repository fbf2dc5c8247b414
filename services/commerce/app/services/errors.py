from typing import List, Optional


class CommerceError(ValueError):
    """Business rule failure whose message can be shown to the shopper or admin."""


class CartNotEditableError(CommerceError):
    pass


class ProductUnavailableError(CommerceError):
    pass


class InsufficientStockError(CommerceError):
    pass


class CheckoutError(CommerceError):
    pass


class OrderTransitionError(CommerceError):
    pass


class SectionValidationError(CommerceError):
    def __init__(self, errors: List[str], message: Optional[str] = None) -> None:
        super().__init__(message or "; ".join(errors))
        self.errors = errors
