from presale.nanocontracts.blueprint import Blueprint, Syscall
from presale.nanocontracts.context import Context
from presale.nanocontracts.exception import NCFail
from presale.nanocontracts.runner import Runner

__all__ = ["Blueprint", "Context", "NCFail", "Runner", "Syscall"]
