import copy
import logging
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, NonNegativeInt, PositiveInt, StrictInt

from presale.nanocontracts.access import Authorizer, SingleAdmin
from presale.nanocontracts.blueprint import Blueprint
from presale.nanocontracts.context import Context
from presale.nanocontracts.exception import (
    ClaimExceeded,
    HardCapExceed,
    InsufficientAssetDeposit,
    InvalidBeneficiary,
    InvalidCapValue,
    InvalidClaimAmount,
    InvalidLimitValue,
    InvalidState,
    InvalidTimestampValue,
    NothingToWithdraw,
    NotInPurchasePeriod,
    NotRefundable,
    PurchaseBelowMinimum,
    PurchaseLimitExceed,
    Unauthorized,
)
from presale.nanocontracts.types import (
    Address,
    Amount,
    NCEvent,
    NCEventKind,
    Timestamp,
    public,
    view,
)

logger = logging.getLogger(__name__)


class PresaleState:
    """Lifecycle states of a presale"""

    INITIALIZED = 1  # Created, asset not deposited yet
    ACTIVE = 2  # Asset deposited, accepting contributions inside the window
    FAILED = 3  # Canceled or ended below soft cap, refunds open
    FINALIZED = 4  # Ended at or above soft cap, claims open


# Forward-only transitions. FAILED -> FAILED lets the admin re-run cancel to
# reclaim the asset after settle failed the sale.
ALLOWED_TRANSITIONS = {
    PresaleState.INITIALIZED: {PresaleState.ACTIVE, PresaleState.FAILED},
    PresaleState.ACTIVE: {PresaleState.FAILED, PresaleState.FINALIZED},
    PresaleState.FAILED: {PresaleState.FAILED},
    PresaleState.FINALIZED: set(),
}


class PresaleErrors:
    """Common error messages"""

    INVALID_STATE = "Invalid presale state"
    UNAUTHORIZED = "Unauthorized action"
    NOT_IN_PERIOD = "Not in purchase period"
    BELOW_MIN = "Amount below minimum contribution"
    ABOVE_MAX = "Contribution limit exceeded"
    HARD_CAP = "Hard cap exceeded"
    NOT_REFUNDABLE = "Presale is not refundable"
    NO_FUNDS = "Nothing to withdraw"
    CLAIM_EXCEEDED = "Claim exceeds entitlement"


class PresaleOptions(BaseModel):
    """Presale configuration, fixed at creation.

    Amounts are integer base units. `price` is asset base units per collateral
    base unit.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    price: PositiveInt
    asset_deposit: PositiveInt
    # Caps and limits are range-checked by `Presale.initialize`
    hard_cap: StrictInt
    soft_cap: StrictInt
    max_contribution: StrictInt
    min_contribution: StrictInt
    start: NonNegativeInt
    end: NonNegativeInt


class PoolSnapshot(NamedTuple):
    """Current pool accounting."""

    state: int
    asset_balance: int
    claimable_asset: int
    collateral_raised: int
    proceeds_withdrawn: int
    participants: int
    options: PresaleOptions
    beneficiary: Address


class PresaleSaleInfo(NamedTuple):
    """General sale information."""

    price: int
    asset_deposit: int
    soft_cap: int
    hard_cap: int
    min_contribution: int
    max_contribution: int
    collateral_raised: int
    state: int
    start: int
    end: int
    participants: int
    beneficiary: str


class PresaleParticipantInfo(NamedTuple):
    """Participant-specific information."""

    contributed: int
    entitlement: int


class PresaleSaleProgress(NamedTuple):
    """Current sale progress metrics."""

    percent_filled: int
    percent_soft_cap: int
    is_successful: bool


class PresaleLedger:
    """Configuration, pool accounting and per-contributor contributions.

    Holds no validation: `Presale` checks every precondition before calling
    the mutators below.
    """

    def __init__(self, options: PresaleOptions, beneficiary: Address) -> None:
        self.options = options
        self.beneficiary = beneficiary
        self.state = PresaleState.INITIALIZED
        self.asset_balance = Amount(0)
        self.claimable_asset = Amount(0)
        self.collateral_raised = Amount(0)
        self.proceeds_withdrawn = Amount(0)
        self.participants = 0
        self.contributions: dict[Address, Amount] = {}

    def snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(
            state=self.state,
            asset_balance=self.asset_balance,
            claimable_asset=self.claimable_asset,
            collateral_raised=self.collateral_raised,
            proceeds_withdrawn=self.proceeds_withdrawn,
            participants=self.participants,
            options=self.options,
            beneficiary=self.beneficiary,
        )

    def get_contribution(self, address: Address) -> Amount:
        return self.contributions.get(address, Amount(0))

    def entitlement_of(self, address: Address) -> Amount:
        return Amount(self.get_contribution(address) * self.options.price)

    def checkpoint(self) -> dict[str, Any]:
        return copy.deepcopy(vars(self))

    def restore(self, checkpoint: dict[str, Any]) -> None:
        vars(self).clear()
        vars(self).update(copy.deepcopy(checkpoint))

    def _set_state(self, state: int) -> None:
        self.state = state

    def _add_asset(self, amount: Amount) -> None:
        self.asset_balance = Amount(self.asset_balance + amount)

    def _credit(self, address: Address, amount: Amount) -> Amount:
        """Add `amount` to the contributor's entry and return the new total."""
        if address not in self.contributions:
            self.participants += 1
        total = Amount(self.get_contribution(address) + amount)
        self.contributions[address] = total
        self.collateral_raised = Amount(self.collateral_raised + amount)
        return total

    def _allocate(self, delta: int) -> None:
        """Move `delta` asset units from the free balance to claimable."""
        self.claimable_asset = Amount(self.claimable_asset + delta)
        self.asset_balance = Amount(self.asset_balance - delta)

    def _clear_contribution(self, address: Address) -> Amount:
        amount = self.get_contribution(address)
        self.contributions[address] = Amount(0)
        self.collateral_raised = Amount(self.collateral_raised - amount)
        return amount

    def _debit_claim(self, address: Address, asset_amount: Amount, collateral_amount: Amount) -> None:
        self.contributions[address] = Amount(self.get_contribution(address) - collateral_amount)
        self.claimable_asset = Amount(self.claimable_asset - asset_amount)

    def _release_asset(self) -> Amount:
        """Zero both asset counters and return how much they held."""
        held = Amount(self.asset_balance + self.claimable_asset)
        self.asset_balance = Amount(0)
        self.claimable_asset = Amount(0)
        return held

    def _take_unsold(self) -> Amount:
        unsold = self.asset_balance
        self.asset_balance = Amount(0)
        return unsold

    def _take_proceeds(self) -> Amount:
        proceeds = self.collateral_raised
        self.collateral_raised = Amount(0)
        self.proceeds_withdrawn = Amount(self.proceeds_withdrawn + proceeds)
        return proceeds


class Presale(Blueprint):
    """Fixed-price presale escrow.

    The life cycle of contracts using this blueprint is the following:

    1. [Admin] `initialize(...)` with the options and the beneficiary.
    2. [Admin] `deposit_asset()` after approving `asset_deposit` to the contract.
    3. [User] `contribute()` with collateral attached, inside `[start, end]`.
    4. [Anyone] `settle()` once `end` is reached.
    5. Failed: [User] `refund()`, [Admin] `cancel()` to reclaim the asset.
       Finalized: [User] `claim_asset(...)`, [Admin] `withdraw_proceeds()` and
       `withdraw_unsold_asset()`.

    The admin can `cancel()` at any time before the sale is finalized.
    """

    ledger: PresaleLedger
    authorizer: Authorizer

    def checkpoint(self) -> dict[str, Any]:
        return self.ledger.checkpoint()

    def restore(self, checkpoint: dict[str, Any]) -> None:
        self.ledger.restore(checkpoint)

    @public
    def initialize(
        self,
        ctx: Context,
        options: PresaleOptions,
        beneficiary: Address,
        authorizer: Optional[Authorizer] = None,
    ) -> None:
        """Validate the options and create the pool in INITIALIZED state.

        Without an explicit authorizer the creator becomes the only admin.
        """
        if authorizer is None:
            authorizer = SingleAdmin(ctx.caller_id)
        if not authorizer(ctx.caller_id):
            raise Unauthorized(PresaleErrors.UNAUTHORIZED)

        if options.soft_cap <= 0 or options.soft_cap > options.hard_cap:
            raise InvalidCapValue("Soft cap must be positive and not above hard cap")
        if options.min_contribution <= 0 or options.min_contribution > options.max_contribution:
            raise InvalidLimitValue(
                "Minimum contribution must be positive and not above maximum"
            )
        if options.start < ctx.timestamp:
            raise InvalidTimestampValue("Start time is in the past")
        if options.end < options.start:
            raise InvalidTimestampValue("End time is before start time")

        assets_needed = options.hard_cap * options.price
        if options.asset_deposit < assets_needed:
            raise InsufficientAssetDeposit(
                f"Asset deposit must cover the hard cap. Need {assets_needed}. Got {options.asset_deposit}."
            )
        if beneficiary == ctx.caller_id:
            raise InvalidBeneficiary("Beneficiary must differ from the admin")

        self.authorizer = authorizer
        self.ledger = PresaleLedger(options, beneficiary)

    @public
    def deposit_asset(self, ctx: Context) -> None:
        """Pull `asset_deposit` from the admin and open the sale."""
        self._only_admin(ctx)
        self._require_state(PresaleState.INITIALIZED)

        amount = Amount(self.ledger.options.asset_deposit)
        self.ledger._add_asset(amount)
        self._transition(PresaleState.ACTIVE)
        self.syscall.pull_asset(ctx.caller_id, amount)
        self._emit(ctx, NCEventKind.DEPOSIT, amount)

    @public(allow_deposit=True)
    def contribute(self, ctx: Context) -> None:
        """Lock the attached collateral in exchange for asset entitlement."""
        self._require_state(PresaleState.ACTIVE)
        options = self.ledger.options
        if not options.start <= ctx.timestamp <= options.end:
            raise NotInPurchasePeriod(PresaleErrors.NOT_IN_PERIOD)

        amount = ctx.value
        if self.ledger.collateral_raised + amount > options.hard_cap:
            raise HardCapExceed(PresaleErrors.HARD_CAP)
        if amount < options.min_contribution:
            raise PurchaseBelowMinimum(PresaleErrors.BELOW_MIN)
        prior = self.ledger.get_contribution(ctx.caller_id)
        if prior + amount > options.max_contribution:
            raise PurchaseLimitExceed(PresaleErrors.ABOVE_MAX)

        # Entitlement is always re-derived from the cumulative contribution
        old_entitlement = self._calculate_entitlement(prior)
        total = self.ledger._credit(ctx.caller_id, amount)
        new_entitlement = self._calculate_entitlement(total)
        self.ledger._allocate(new_entitlement - old_entitlement)

        self._validate_state()
        self._emit(ctx, NCEventKind.PURCHASE, amount)

    @public
    def settle(self, ctx: Context) -> int:
        """Close the sale once `end` is reached and return the resulting state.

        Does nothing before `end` or when the sale is not ACTIVE.
        """
        ledger = self.ledger
        if ledger.state != PresaleState.ACTIVE or ctx.timestamp < ledger.options.end:
            return ledger.state

        raised = ledger.collateral_raised
        if raised < ledger.options.soft_cap:
            self._transition(PresaleState.FAILED)
            self._emit(ctx, NCEventKind.CANCEL, raised)
        else:
            self._transition(PresaleState.FINALIZED)
            self._emit(ctx, NCEventKind.FINALIZED, raised)
        return ledger.state

    @public
    def cancel(self, ctx: Context) -> None:
        """Abort the sale and return any deposited asset to the admin."""
        self._only_admin(ctx)
        if self.ledger.state == PresaleState.FINALIZED:
            raise InvalidState(PresaleErrors.INVALID_STATE)

        was_failed = self.ledger.state == PresaleState.FAILED
        self._transition(PresaleState.FAILED)
        held = self.ledger._release_asset()
        if held > 0:
            self.syscall.push_asset(ctx.caller_id, held)
        elif was_failed:
            return
        self._emit(ctx, NCEventKind.CANCEL, held)

    @public
    def refund(self, ctx: Context) -> None:
        """Return the caller's whole contribution after the sale failed."""
        if not self._is_refundable(ctx.timestamp):
            raise NotRefundable(PresaleErrors.NOT_REFUNDABLE)
        if self.ledger.get_contribution(ctx.caller_id) == 0:
            raise NothingToWithdraw(PresaleErrors.NO_FUNDS)

        amount = self.ledger._clear_contribution(ctx.caller_id)
        self.syscall.send_collateral(ctx.caller_id, amount)
        self._emit(ctx, NCEventKind.WITHDRAW, amount)

    @public
    def claim_asset(self, ctx: Context, amount: Optional[int] = None) -> None:
        """Claim `amount` asset units, or the whole entitlement when omitted.

        Claims must be whole multiples of `price`, so that the contribution
        reduction `amount / price` is exact.
        """
        self._require_state(PresaleState.FINALIZED)
        price = self.ledger.options.price
        entitlement = self.ledger.entitlement_of(ctx.caller_id)

        if amount is None:
            if entitlement == 0:
                raise NothingToWithdraw(PresaleErrors.NO_FUNDS)
            amount = entitlement
        if amount <= 0:
            raise InvalidClaimAmount("Claim amount must be positive")
        if amount > entitlement:
            raise ClaimExceeded(PresaleErrors.CLAIM_EXCEEDED)
        if amount % price != 0:
            raise InvalidClaimAmount(f"Claim amount must be a multiple of {price}")

        self.ledger._debit_claim(ctx.caller_id, Amount(amount), Amount(amount // price))
        self.syscall.push_asset(ctx.caller_id, Amount(amount))
        self._emit(ctx, NCEventKind.WITHDRAW, Amount(amount))

    @public
    def withdraw_proceeds(self, ctx: Context) -> None:
        """Send the raised collateral to the beneficiary."""
        self._only_admin(ctx)
        self._require_state(PresaleState.FINALIZED)
        if self.ledger.collateral_raised == 0:
            raise NothingToWithdraw(PresaleErrors.NO_FUNDS)

        amount = self.ledger._take_proceeds()
        self.syscall.send_collateral(self.ledger.beneficiary, amount)
        self._emit(ctx, NCEventKind.WITHDRAW, amount)

    @public
    def withdraw_unsold_asset(self, ctx: Context) -> None:
        """Return asset that no contributor bought to the admin.

        Contributors can still claim their allocated asset afterwards.
        """
        self._only_admin(ctx)
        self._require_state(PresaleState.FINALIZED)
        if self.ledger.asset_balance == 0:
            raise NothingToWithdraw("No unsold asset to withdraw")

        unsold = self.ledger._take_unsold()
        self.syscall.push_asset(ctx.caller_id, unsold)
        self._emit(ctx, NCEventKind.WITHDRAW, unsold)

    def _only_admin(self, ctx: Context) -> None:
        if not self.authorizer(ctx.caller_id):
            raise Unauthorized(PresaleErrors.UNAUTHORIZED)

    def _require_state(self, state: int) -> None:
        if self.ledger.state != state:
            raise InvalidState(PresaleErrors.INVALID_STATE)

    def _transition(self, state: int) -> None:
        current = self.ledger.state
        if state not in ALLOWED_TRANSITIONS[current]:
            raise InvalidState(f"Cannot move from state {current} to {state}")
        if state != current:
            logger.info(
                "presale %s: state %d -> %d", self.syscall.contract_id.hex(), current, state
            )
        self.ledger._set_state(state)

    def _is_refundable(self, timestamp: int) -> bool:
        ledger = self.ledger
        if ledger.state == PresaleState.FAILED:
            return True
        return (
            ledger.state == PresaleState.ACTIVE
            and timestamp > ledger.options.end
            and ledger.collateral_raised < ledger.options.soft_cap
        )

    def _calculate_entitlement(self, contribution: int) -> Amount:
        """Calculate asset units owed for a collateral amount."""
        return Amount(contribution * self.ledger.options.price)

    def _validate_state(self) -> None:
        """Validate pool accounting invariants"""
        ledger = self.ledger
        assert ledger.asset_balance >= 0, "Asset balance went negative"
        assert (
            ledger.asset_balance + ledger.claimable_asset == ledger.options.asset_deposit
        ), "Asset accounting out of balance"
        assert ledger.collateral_raised <= ledger.options.hard_cap, "Hard cap overrun"

    def _emit(self, ctx: Context, kind: NCEventKind, amount: Amount) -> None:
        self.syscall.emit_event(
            NCEvent(
                kind=kind,
                actor=ctx.caller_id,
                amount=Amount(amount),
                timestamp=Timestamp(ctx.timestamp),
                state=self.ledger.state,
            )
        )

    @view
    def get_pool(self) -> PoolSnapshot:
        """Get the current pool accounting."""
        return self.ledger.snapshot()

    @view
    def get_contribution(self, address: Address) -> Amount:
        return self.ledger.get_contribution(address)

    @view
    def get_entitlement(self, address: Address) -> Amount:
        return self.ledger.entitlement_of(address)

    @view
    def get_asset_allowance(self, holder: Address) -> Amount:
        """Allowance `holder` has granted this contract for the asset deposit."""
        return self.syscall.get_asset_allowance(holder)

    @view
    def is_refundable(self, timestamp: int) -> bool:
        return self._is_refundable(timestamp)

    @view
    def get_sale_info(self) -> PresaleSaleInfo:
        """Get general sale information."""
        ledger = self.ledger
        options = ledger.options
        return PresaleSaleInfo(
            price=options.price,
            asset_deposit=options.asset_deposit,
            soft_cap=options.soft_cap,
            hard_cap=options.hard_cap,
            min_contribution=options.min_contribution,
            max_contribution=options.max_contribution,
            collateral_raised=ledger.collateral_raised,
            state=ledger.state,
            start=options.start,
            end=options.end,
            participants=ledger.participants,
            beneficiary=ledger.beneficiary.hex(),
        )

    @view
    def get_participant_info(self, address: Address) -> PresaleParticipantInfo:
        """Get participant-specific information."""
        return PresaleParticipantInfo(
            contributed=self.ledger.get_contribution(address),
            entitlement=self.ledger.entitlement_of(address),
        )

    @view
    def get_sale_progress(self) -> PresaleSaleProgress:
        """Get current sale progress metrics."""
        ledger = self.ledger
        # After proceeds are withdrawn the raised total lives in proceeds_withdrawn
        raised = ledger.collateral_raised + ledger.proceeds_withdrawn
        return PresaleSaleProgress(
            percent_filled=(raised * 100) // ledger.options.hard_cap,
            percent_soft_cap=(raised * 100) // ledger.options.soft_cap,
            is_successful=ledger.state == PresaleState.FINALIZED,
        )
