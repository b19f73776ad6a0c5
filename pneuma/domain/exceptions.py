"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input rejected before any mutation (bad configuration, amount, or state transition)"""

    pass


class NotFoundError(DomainException):
    """Referenced transaction or fixed cost does not exist"""

    pass


class StoreError(DomainException):
    """Ledger or configuration store failed; never retried inside the core"""

    pass
