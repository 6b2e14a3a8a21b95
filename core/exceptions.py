"""Typed exceptions for pricing, lifecycle and stock failures.

All inherit from DomainError, which is a ValueError so that callers
treating business-rule violations as bad input keep working.
"""


class DomainError(ValueError):
    """Base class for business-rule violations."""


class InvalidInputError(DomainError):
    """Malformed quantity, discount, price or tax rate."""


class MissingSelectionError(DomainError):
    """A product with several variants was added without choosing one."""


class NotFoundError(DomainError):
    """Referenced item, variant, product or document does not exist."""


class InvalidTransitionError(DomainError):
    """Status change not allowed from the current state."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot move from '{current}' to '{target}'")


class InvalidAmountError(DomainError):
    """Payment or down payment outside the permitted range."""

    def __init__(self, message: str, amount=None, limit=None):
        self.amount = amount
        self.limit = limit
        super().__init__(message)


class MissingBankError(DomainError):
    """Transfer payment recorded without a bank."""


class InsufficientStockError(DomainError):
    """Stock would go negative."""

    def __init__(self, item_id: str, available: int, requested: int):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_id}: available {available}, requested {requested}"
        )


class ConcurrentUpdateError(DomainError):
    """
    Document changed since it was read.

    Raised by the document store when a write carries a stale revision.
    The caller should reload and reapply the operation.
    """

    def __init__(self, collection: str, document_id: str, expected: int, actual: int):
        self.collection = collection
        self.document_id = document_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{collection}/{document_id} is at revision {actual}, expected {expected}"
        )
