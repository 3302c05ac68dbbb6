from dataclasses import dataclass

from presale.nanocontracts.types import Address, Amount, Timestamp


@dataclass(frozen=True, slots=True)
class Context:
    """Execution context of a single public call.

    `timestamp` is read once from the clock when the context is built, so every
    check inside the call sees the same time.
    """

    caller_id: Address
    timestamp: Timestamp
    value: Amount = Amount(0)

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("attached value cannot be negative")
