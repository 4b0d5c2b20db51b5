"""
Error Taxonomy

Every failure the core can report is one of these classes.
Operations check all of their preconditions first and raise before
touching any state, so catching one of these means nothing changed.
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Bad input: non-positive amount, blank category, self-transfer, unknown recipient."""
    pass


class AuthorizationError(LedgerError):
    """Bad credentials, duplicate username, or no signed-in user."""
    pass


class CategoryNotFoundError(LedgerError):
    """The category (or its budget) does not exist in the ledger."""

    def __init__(self, category: str, message: str):
        self.category = category
        super().__init__(message)


class InsufficientFundsError(LedgerError):
    """Transfer amount exceeds the sender's balance."""

    def __init__(self, balance, amount, message: str = "Insufficient funds for transfer"):
        self.balance = balance
        self.amount = amount
        super().__init__(message)


class LockTimeoutError(LedgerError):
    """A ledger lock could not be acquired in time."""

    def __init__(self, owner: str, timeout: float):
        self.owner = owner
        self.timeout = timeout
        super().__init__(
            f"Timed out after {timeout:.1f}s waiting for the ledger of '{owner}'"
        )
