from typing import Callable

from presale.nanocontracts.types import Address

# Answers "may this caller run privileged methods?"
Authorizer = Callable[[Address], bool]


class SingleAdmin:
    """Authorizer granting privileged access to exactly one address."""

    def __init__(self, admin: Address) -> None:
        self.admin = admin

    def __call__(self, caller_id: Address) -> bool:
        return caller_id == self.admin

    def __repr__(self) -> str:
        return f"SingleAdmin({self.admin.hex()})"
