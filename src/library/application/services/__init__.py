from .catalog_service import CatalogService
from .circulation_service import BorrowOutcome, CirculationService, ReturnOutcome, StudentProfile
from .identity_resolver import IdentityResolver, ResolvedIdentity
from .loan_ledger import LoanHistoryPage, LoanLedger, LoanView

__all__ = [
    "BorrowOutcome",
    "CatalogService",
    "CirculationService",
    "IdentityResolver",
    "LoanHistoryPage",
    "LoanLedger",
    "LoanView",
    "ResolvedIdentity",
    "ReturnOutcome",
    "StudentProfile",
]
