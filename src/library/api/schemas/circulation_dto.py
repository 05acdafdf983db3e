from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.library.api.schemas.catalog_dto import StudentResponse
from src.library.domain.value_objects import LoanMethod


class BorrowRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    student_token: str = Field(max_length=2048, description="Scanned or typed student identifier")
    item_token: str = Field(max_length=2048, description="Scanned or typed item identifier")
    method: LoanMethod = LoanMethod.MANUAL


class ReturnRequest(BaseModel):
    """Either `loan_token`, or both `student_token` and `item_token`."""
    model_config = ConfigDict(extra="forbid")
    loan_token: Optional[str] = Field(default=None, max_length=2048)
    student_token: Optional[str] = Field(default=None, max_length=2048)
    item_token: Optional[str] = Field(default=None, max_length=2048)

    @model_validator(mode="after")
    def _one_way_to_identify(self) -> "ReturnRequest":
        pair = self.student_token is not None and self.item_token is not None
        if self.loan_token is None and not pair:
            raise ValueError("provide loan_token or both student_token and item_token")
        if self.loan_token is not None and (self.student_token is not None or self.item_token is not None):
            raise ValueError("loan_token cannot be combined with student_token/item_token")
        return self


class StudentTokenRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    student_token: str = Field(max_length=2048)


class LoanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    student_id: str
    item_id: str
    borrowed_at: datetime
    due_date: datetime
    returned: bool
    returned_at: Optional[datetime] = None
    fine_accrued: Decimal
    fine_paid: Decimal
    last_notification_date: Optional[date] = None
    method: LoanMethod


class LoanViewResponse(BaseModel):
    loan: LoanResponse
    item_title: Optional[str] = None
    item_author: Optional[str] = None
    days_overdue: int
    fine: Decimal
    outstanding: Decimal
    student_name: Optional[str] = None


class LoanHistoryResponse(BaseModel):
    """Paginated loan history, newest borrow first."""
    loans: List[LoanViewResponse]
    total: int
    skip: int
    limit: int


class ReturnResponse(BaseModel):
    loan: LoanResponse
    fine_amount: Decimal


class ProfileResponse(BaseModel):
    student: StudentResponse
    active_loans: List[LoanViewResponse]
    total_outstanding_fine: Decimal


class SettleFineResponse(BaseModel):
    settled_count: int


class ActiveLoanCountResponse(BaseModel):
    active_loans: int


class SweepReportResponse(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    sweep_date: date
    scanned: int
    fines_updated: int
    notified: int
    skipped: int
    failed: int
