from .base import LedgerGateway, Provider
from .bifrost import PROTOCOL_VERSION, BifrostProvider
from .horizon import HorizonGateway
from .models import AccountSigner, AddressRegistration, LedgerAccount, SubmissionResult

__all__ = [
    "Provider",
    "LedgerGateway",
    "HorizonGateway",
    "BifrostProvider",
    "PROTOCOL_VERSION",
    "AccountSigner",
    "AddressRegistration",
    "LedgerAccount",
    "SubmissionResult",
]
