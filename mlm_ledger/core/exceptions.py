"""
Domain errors raised by the ledger services.

Every error carries the HTTP status the API answers with, so endpoints can
let them propagate to the app-level handler.
"""


class LedgerError(Exception):
    """Base class for all business-rule failures."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    status_code = 404


class StateError(LedgerError):
    status_code = 409


class UserNotFound(NotFoundError):
    pass


class ProductNotFound(NotFoundError):
    pass


class OrderNotFound(NotFoundError):
    pass


class WithdrawalNotFound(NotFoundError):
    pass


class KycNotFound(NotFoundError):
    pass


class InvalidSponsor(LedgerError):
    pass


class InvalidOrderState(StateError):
    pass


class InsufficientBalance(LedgerError):
    pass


class KycNotApproved(LedgerError):
    pass


class KycStateError(StateError):
    pass


class InvalidWithdrawalAmount(LedgerError):
    pass


class PendingWithdrawalExists(StateError):
    pass


class WithdrawalStateError(StateError):
    pass


class NoPoolsAvailable(NotFoundError):
    pass


class JobAlreadyRunning(StateError):
    pass


class ReferralCodeGenerationError(LedgerError):
    status_code = 500


class LedgerInvariantError(LedgerError):
    """Raised when a computed plan does not conserve the order value."""
    status_code = 500
