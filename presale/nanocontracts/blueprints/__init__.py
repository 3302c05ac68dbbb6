from presale.nanocontracts.blueprints.presale import Presale

__all__ = ["Presale"]
