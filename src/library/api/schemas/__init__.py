from .circulation_dto import (
    ActiveLoanCountResponse,
    BorrowRequest,
    LoanHistoryResponse,
    LoanResponse,
    LoanViewResponse,
    ProfileResponse,
    ReturnRequest,
    ReturnResponse,
    SettleFineResponse,
    StudentTokenRequest,
    SweepReportResponse,
)
from .catalog_dto import ItemCreateRequest, ItemResponse, StudentCreateRequest, StudentResponse

__all__ = [
    "ActiveLoanCountResponse",
    "BorrowRequest",
    "ItemCreateRequest",
    "ItemResponse",
    "LoanHistoryResponse",
    "LoanResponse",
    "LoanViewResponse",
    "ProfileResponse",
    "ReturnRequest",
    "ReturnResponse",
    "SettleFineResponse",
    "StudentCreateRequest",
    "StudentResponse",
    "StudentTokenRequest",
    "SweepReportResponse",
]
