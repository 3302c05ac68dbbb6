import logging
from abc import ABC, abstractmethod
from typing import Any

from presale.nanocontracts.custody import AssetCustody, CollateralVault
from presale.nanocontracts.exception import InsufficientAllowance, TransferFailed
from presale.nanocontracts.types import Address, Amount, ContractId, NCEvent

logger = logging.getLogger(__name__)


class Syscall:
    """Host services a blueprint uses to move value and emit events.

    Every transfer reports failure by raising `TransferFailed`, which makes the
    runner roll the whole call back.
    """

    def __init__(
        self, contract_id: ContractId, asset: AssetCustody, vault: CollateralVault
    ) -> None:
        self.contract_id = contract_id
        self.asset = asset
        self.vault = vault
        self.events: list[NCEvent] = []
        self._pending: list[NCEvent] = []

    @property
    def address(self) -> Address:
        return Address(self.contract_id)

    def get_asset_allowance(self, holder: Address) -> Amount:
        return self.asset.allowance(holder, self.address)

    def get_asset_balance(self) -> Amount:
        return self.asset.balance_of(self.address)

    def get_collateral_balance(self) -> Amount:
        return self.vault.balance_of(self.address)

    def pull_asset(self, holder: Address, amount: Amount) -> None:
        allowed = self.get_asset_allowance(holder)
        if allowed < amount:
            raise InsufficientAllowance(
                f"Allowance of {allowed} is below the required {amount}"
            )
        if not self.asset.transfer_from(self.address, holder, self.address, amount):
            raise TransferFailed("Asset deposit failed")

    def push_asset(self, recipient: Address, amount: Amount) -> None:
        if not self.asset.transfer(self.address, recipient, amount):
            raise TransferFailed("Asset transfer failed")

    def receive_collateral(self, sender: Address, amount: Amount) -> None:
        if not self.vault.transfer(sender, self.address, amount):
            raise TransferFailed("Could not take attached collateral")

    def send_collateral(self, recipient: Address, amount: Amount) -> None:
        if not self.vault.transfer(self.address, recipient, amount):
            raise TransferFailed("Collateral transfer failed")

    def emit_event(self, event: NCEvent) -> None:
        self._pending.append(event)

    def commit(self) -> None:
        self.events.extend(self._pending)
        self._pending = []

    def discard(self) -> None:
        if self._pending:
            logger.debug("discarding %d events of %s", len(self._pending), self.contract_id.hex())
        self._pending = []


class Blueprint(ABC):
    """Base class of contracts executed by the runner.

    Subclasses hold their state in plain attributes and expose it to the runner
    through `checkpoint`/`restore`, so a failed call leaves no trace.
    """

    def __init__(self, syscall: Syscall) -> None:
        self.syscall = syscall

    @abstractmethod
    def checkpoint(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def restore(self, checkpoint: Any) -> None:
        raise NotImplementedError
