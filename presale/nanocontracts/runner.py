import logging
from typing import Any, Callable, Optional

from presale.conf import settings
from presale.nanocontracts.blueprint import Blueprint, Syscall
from presale.nanocontracts.clock import Clock
from presale.nanocontracts.context import Context
from presale.nanocontracts.custody import AssetCustody, CollateralVault
from presale.nanocontracts.exception import (
    NCContractAlreadyExists,
    NCContractDoesNotExist,
    NCFail,
    NCForbiddenAction,
    NCMethodNotFound,
    NCReentrancyError,
)
from presale.nanocontracts.types import (
    ALLOW_DEPOSIT_MARKER,
    PUBLIC_MARKER,
    VIEW_MARKER,
    Address,
    Amount,
    ContractId,
    NCEvent,
    Timestamp,
)

logger = logging.getLogger(__name__)


class Runner:
    """Executes public methods of contracts, one call at a time.

    Each call either commits completely (state, value moved, events) or is
    rolled back to the checkpoint taken before it started. A call that tries
    to enter the runner while another call is in flight is rejected.
    """

    def __init__(self, clock: Clock, asset: AssetCustody, vault: CollateralVault) -> None:
        self.clock = clock
        self.asset = asset
        self.vault = vault
        self._contracts: dict[ContractId, Blueprint] = {}
        self._running: Optional[str] = None

    def create_context(
        self,
        caller_id: Address,
        value: int = 0,
        timestamp: Optional[int] = None,
    ) -> Context:
        if timestamp is None:
            timestamp = self.clock.now()
        return Context(
            caller_id=caller_id, timestamp=Timestamp(timestamp), value=Amount(value)
        )

    def create_contract(
        self,
        contract_id: ContractId,
        blueprint_class: Callable[[Syscall], Blueprint],
        ctx: Context,
        *args: Any,
        **kwargs: Any,
    ) -> Blueprint:
        """Instantiate a blueprint and run its `initialize` method.

        The contract is only registered if `initialize` succeeds.
        """
        if contract_id in self._contracts:
            raise NCContractAlreadyExists(f"Contract {contract_id.hex()} already exists")
        syscall = Syscall(contract_id, self.asset, self.vault)
        contract = blueprint_class(syscall)
        self._execute(contract, "initialize", ctx, args, kwargs, checkpoint=False)
        self._contracts[contract_id] = contract
        logger.info(
            "created contract %s on %s", contract_id.hex(), settings.NETWORK_NAME
        )
        return contract

    def get_contract(self, contract_id: ContractId) -> Blueprint:
        try:
            return self._contracts[contract_id]
        except KeyError:
            raise NCContractDoesNotExist(f"Contract {contract_id.hex()} does not exist")

    def get_events(self, contract_id: ContractId) -> list[NCEvent]:
        return list(self.get_contract(contract_id).syscall.events)

    def call_public_method(
        self, contract_id: ContractId, method_name: str, ctx: Context, *args: Any, **kwargs: Any
    ) -> Any:
        contract = self.get_contract(contract_id)
        return self._execute(contract, method_name, ctx, args, kwargs)

    def call_view_method(
        self, contract_id: ContractId, method_name: str, *args: Any, **kwargs: Any
    ) -> Any:
        contract = self.get_contract(contract_id)
        method = getattr(contract, method_name, None)
        if method is None or not getattr(method, VIEW_MARKER, False):
            raise NCMethodNotFound(f"{method_name} is not a view method")
        return method(*args, **kwargs)

    def _execute(
        self,
        contract: Blueprint,
        method_name: str,
        ctx: Context,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        checkpoint: bool = True,
    ) -> Any:
        method = getattr(contract, method_name, None)
        if method is None or not getattr(method, PUBLIC_MARKER, False):
            raise NCMethodNotFound(f"{method_name} is not a public method")
        if ctx.value > 0 and not getattr(method, ALLOW_DEPOSIT_MARKER, False):
            raise NCForbiddenAction(f"{method_name} does not accept collateral")
        if self._running is not None:
            raise NCReentrancyError(
                f"Cannot call {method_name} while {self._running} is running"
            )

        syscall = contract.syscall
        saved = contract.checkpoint() if checkpoint else None
        received = False
        self._running = method_name
        try:
            if ctx.value > 0:
                syscall.receive_collateral(ctx.caller_id, ctx.value)
                received = True
            result = method(ctx, *args, **kwargs)
        except Exception as e:
            if saved is not None:
                contract.restore(saved)
            syscall.discard()
            if received:
                syscall.send_collateral(ctx.caller_id, ctx.value)
            if isinstance(e, NCFail):
                logger.debug("%s rolled back: %s: %s", method_name, type(e).__name__, e)
            else:
                logger.exception("%s crashed and was rolled back", method_name)
            raise
        finally:
            self._running = None

        syscall.commit()
        return result
