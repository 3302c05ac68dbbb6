class NCFail(Exception):
    """Raised by a contract to reject a call. The runner rolls the call back."""

    pass


class NCMethodNotFound(NCFail):
    pass


class NCForbiddenAction(NCFail):
    """Collateral was attached to a method that does not accept it."""

    pass


class NCReentrancyError(NCFail):
    """A public method was invoked while another call was still running."""

    pass


class Unauthorized(NCFail):
    pass


# Configuration errors, raised only while creating a presale
class ConfigurationError(NCFail):
    pass


class InvalidCapValue(ConfigurationError):
    pass


class InvalidLimitValue(ConfigurationError):
    pass


class InvalidTimestampValue(ConfigurationError):
    pass


class InsufficientAssetDeposit(ConfigurationError):
    pass


class InvalidBeneficiary(ConfigurationError):
    pass


# State preconditions
class StateError(NCFail):
    pass


class InvalidState(StateError):
    pass


class NotRefundable(StateError):
    pass


# Purchase window
class WindowError(NCFail):
    pass


class NotInPurchasePeriod(WindowError):
    pass


# Contribution limits
class LimitError(NCFail):
    pass


class PurchaseBelowMinimum(LimitError):
    pass


class PurchaseLimitExceed(LimitError):
    pass


class HardCapExceed(LimitError):
    pass


# Settlement
class SettlementError(NCFail):
    pass


class NothingToWithdraw(SettlementError):
    pass


class ClaimExceeded(SettlementError):
    pass


class InvalidClaimAmount(SettlementError):
    pass


# Value transfer
class TransferError(NCFail):
    pass


class TransferFailed(TransferError):
    pass


class InsufficientAllowance(TransferError):
    pass


class NCContractAlreadyExists(NCFail):
    pass


class NCContractDoesNotExist(NCFail):
    pass
