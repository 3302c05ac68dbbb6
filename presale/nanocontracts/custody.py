"""Custody of the value a contract moves around.

A presale never touches balances directly. It asks two collaborators to move
value and checks the boolean they return:

- an asset custody (the fungible asset being sold), ERC20-like with allowances;
- a collateral vault (the native currency contributors attach to calls).

The in-memory implementations below back the test suite and any embedding that
does not have a chain behind it.
"""

from typing import Protocol

from presale.nanocontracts.types import Address, Amount


class AssetCustody(Protocol):
    def balance_of(self, address: Address) -> Amount: ...

    def allowance(self, holder: Address, spender: Address) -> Amount: ...

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> bool: ...

    def transfer_from(
        self, spender: Address, holder: Address, recipient: Address, amount: Amount
    ) -> bool: ...


class CollateralVault(Protocol):
    def balance_of(self, address: Address) -> Amount: ...

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> bool: ...


class MemoryVault:
    """Native currency balances kept in a dict."""

    def __init__(self) -> None:
        self.balances: dict[Address, Amount] = {}

    def balance_of(self, address: Address) -> Amount:
        return self.balances.get(address, Amount(0))

    def mint(self, address: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError("cannot mint a negative amount")
        self.balances[address] = Amount(self.balance_of(address) + amount)

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self.balances[sender] = Amount(self.balance_of(sender) - amount)
        self.balances[recipient] = Amount(self.balance_of(recipient) + amount)
        return True


class MemoryToken(MemoryVault):
    """Fungible asset with allowances.

    `transfer_from` spends the allowance `holder` granted to `spender`.
    """

    def __init__(self, symbol: str = "TKN") -> None:
        super().__init__()
        self.symbol = symbol
        self.allowances: dict[tuple[Address, Address], Amount] = {}

    def allowance(self, holder: Address, spender: Address) -> Amount:
        return self.allowances.get((holder, spender), Amount(0))

    def approve(self, holder: Address, spender: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError("allowance cannot be negative")
        self.allowances[(holder, spender)] = amount

    def transfer_from(
        self, spender: Address, holder: Address, recipient: Address, amount: Amount
    ) -> bool:
        allowed = self.allowance(holder, spender)
        if allowed < amount:
            return False
        if not self.transfer(holder, recipient, amount):
            return False
        self.allowances[(holder, spender)] = Amount(allowed - amount)
        return True
