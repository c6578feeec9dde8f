"""
Error taxonomy shared by all use cases.

Each class maps to one caller-facing status in bookkeeper.api.errors.
"""
from decimal import Decimal


class BookkeepingError(Exception):
    """Base class for every error a use case raises on purpose"""
    pass


# --- Validation (400) ---

class ValidationError(BookkeepingError, ValueError):
    """Malformed request; detected before the database is touched"""
    pass


class EntryValidationError(ValidationError):
    pass


class AccountValidationError(ValidationError):
    pass


class LoanValidationError(ValidationError):
    pass


class BudgetValidationError(ValidationError):
    pass


class CategoryValidationError(ValidationError):
    pass


# --- Not found (404) ---

class NotFoundError(BookkeepingError):
    """
    Resource missing for this user.

    Also raised when the resource exists but belongs to someone else.
    """

    def __init__(self, kind: str, resource_id):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(f"{kind} #{resource_id} not found")


# --- Conflicts (409) ---

class InsufficientFundsError(BookkeepingError):
    def __init__(self, account_id: int, current: Decimal, required: Decimal):
        self.account_id = account_id
        self.current = current
        self.required = required
        super().__init__(
            f"Insufficient funds in account #{account_id} "
            f"(current: {current:.2f}, required: {required:.2f})"
        )


class ConflictError(BookkeepingError):
    pass


class SettlementAlreadyPostedError(ConflictError):
    def __init__(self, period_key: str):
        self.period_key = period_key
        super().__init__(f"{period_key} has already been settled")


class LoanAlreadySettledError(ConflictError):
    def __init__(self, loan_id: int):
        self.loan_id = loan_id
        super().__init__(f"Loan #{loan_id} is already fully repaid")


# --- Precondition failed (412) ---

class PreconditionFailedError(BookkeepingError):
    pass


class NoPrimaryAccountError(PreconditionFailedError):
    def __init__(self):
        super().__init__("No primary account is set; monthly settlement needs one")


# --- Internal (500) ---

class StorageError(BookkeepingError):
    """Database failure or serialization conflict; the unit of work was rolled back"""
    pass
