from presale.nanocontracts.access import Authorizer, SingleAdmin
from presale.nanocontracts.blueprint import Blueprint, Syscall
from presale.nanocontracts.blueprints.presale import (
    PoolSnapshot,
    Presale,
    PresaleLedger,
    PresaleOptions,
    PresaleState,
)
from presale.nanocontracts.clock import Clock, ManualClock, SystemClock
from presale.nanocontracts.context import Context
from presale.nanocontracts.custody import (
    AssetCustody,
    CollateralVault,
    MemoryToken,
    MemoryVault,
)
from presale.nanocontracts.exception import NCFail
from presale.nanocontracts.runner import Runner
from presale.nanocontracts.types import (
    Address,
    Amount,
    ContractId,
    NCEvent,
    NCEventKind,
    Timestamp,
    public,
    view,
)

__all__ = [
    "Address",
    "Amount",
    "AssetCustody",
    "Authorizer",
    "Blueprint",
    "Clock",
    "CollateralVault",
    "Context",
    "ContractId",
    "ManualClock",
    "MemoryToken",
    "MemoryVault",
    "NCEvent",
    "NCEventKind",
    "NCFail",
    "PoolSnapshot",
    "Presale",
    "PresaleLedger",
    "PresaleOptions",
    "PresaleState",
    "Runner",
    "SingleAdmin",
    "Syscall",
    "SystemClock",
    "Timestamp",
    "public",
    "view",
]
