"""Domain error taxonomy shared by every aggregate and service"""

from typing import Optional


class DomainError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ItemNotFoundError(NotFoundError):
    def __init__(self, product_id: object):
        super().__init__("Cart item for product", product_id)
        self.product_id = product_id


class InvalidStateTransitionError(DomainError):
    status_code = 409

    def __init__(self, entity: str, current_state: str, attempted: str):
        super().__init__(f"Cannot {attempted} {entity} with status {current_state}")
        self.entity = entity
        self.current_state = current_state
        self.attempted = attempted


class InvalidOperationError(DomainError):
    status_code = 409


class ValidationError(DomainError):
    status_code = 400


class InvalidQuantityError(ValidationError):
    def __init__(self, quantity: int):
        super().__init__(f"Quantity must be positive, got {quantity}")
        self.quantity = quantity


class CurrencyMismatchError(DomainError):
    status_code = 400

    def __init__(self, left: str, right: str):
        super().__init__(f"Cannot combine amounts in {left} and {right}")
        self.left = left
        self.right = right


class UnauthorizedError(DomainError):
    status_code = 403


class ExternalServiceError(DomainError):
    status_code = 502
