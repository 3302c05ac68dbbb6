from enum import Enum
from typing import Any, Callable, NamedTuple, NewType, TypeVar, overload

Address = NewType("Address", bytes)
ContractId = NewType("ContractId", bytes)
Amount = NewType("Amount", int)
Timestamp = NewType("Timestamp", int)

T = TypeVar("T", bound=Callable[..., Any])

PUBLIC_MARKER = "_nc_public"
VIEW_MARKER = "_nc_view"
ALLOW_DEPOSIT_MARKER = "_nc_allow_deposit"


class NCEventKind(str, Enum):
    DEPOSIT = "Deposit"
    PURCHASE = "Purchase"
    CANCEL = "Cancel"
    FINALIZED = "Finalized"
    WITHDRAW = "Withdraw"


class NCEvent(NamedTuple):
    """A record appended to a contract's log when a call commits."""

    kind: NCEventKind
    actor: Address
    amount: Amount
    timestamp: Timestamp
    state: int


@overload
def public(fn: T) -> T: ...


@overload
def public(*, allow_deposit: bool = False) -> Callable[[T], T]: ...


def public(fn: Any = None, *, allow_deposit: bool = False) -> Any:
    """Mark a method as callable through `Runner.call_public_method`.

    Only methods created with `allow_deposit=True` accept a context carrying
    collateral.
    """

    def decorator(method: T) -> T:
        setattr(method, PUBLIC_MARKER, True)
        setattr(method, ALLOW_DEPOSIT_MARKER, allow_deposit)
        return method

    if fn is None:
        return decorator
    return decorator(fn)


def view(fn: T) -> T:
    """Mark a method as a read-only view."""
    setattr(fn, VIEW_MARKER, True)
    return fn
