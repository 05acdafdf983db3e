from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from src.dependencies import (
    CurrentStaff,
    get_circulation_service,
    get_current_staff,
    get_loan_ledger,
    get_overdue_sweep,
)
from src.library.api.schemas import (
    ActiveLoanCountResponse,
    BorrowRequest,
    LoanHistoryResponse,
    LoanResponse,
    LoanViewResponse,
    ProfileResponse,
    ReturnRequest,
    ReturnResponse,
    SettleFineResponse,
    StudentResponse,
    StudentTokenRequest,
    SweepReportResponse,
)
from src.library.application.services import CirculationService, LoanLedger, LoanView
from src.library.application.worker import OverdueSweep
from src.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/circulation",
    tags=["circulation"],
    dependencies=[Depends(get_current_staff)],
)


def _view(v: LoanView) -> LoanViewResponse:
    return LoanViewResponse(
        loan=LoanResponse.model_validate(v.loan),
        item_title=v.item_title,
        item_author=v.item_author,
        days_overdue=v.days_overdue,
        fine=v.fine,
        outstanding=v.outstanding,
        student_name=v.student_name,
    )


@router.post("/borrow", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
async def borrow(
    body: BorrowRequest,
    staff: CurrentStaff = Depends(get_current_staff),
    svc: CirculationService = Depends(get_circulation_service),
):
    outcome = await svc.borrow(body.student_token, body.item_token, body.method)
    logger.info("Borrow recorded", loan_id=outcome.loan.id, staff=staff.sub)
    return LoanResponse.model_validate(outcome.loan)


@router.post("/return", response_model=ReturnResponse)
async def return_item(
    body: ReturnRequest,
    staff: CurrentStaff = Depends(get_current_staff),
    svc: CirculationService = Depends(get_circulation_service),
):
    outcome = await svc.return_item(
        loan_token=body.loan_token,
        student_token=body.student_token,
        item_token=body.item_token,
    )
    logger.info("Return recorded", loan_id=outcome.loan.id, staff=staff.sub)
    return ReturnResponse(loan=LoanResponse.model_validate(outcome.loan), fine_amount=outcome.fine_amount)


@router.post("/profile", response_model=ProfileResponse)
async def student_profile(body: StudentTokenRequest, svc: CirculationService = Depends(get_circulation_service)):
    profile = await svc.profile(body.student_token)
    return ProfileResponse(
        student=StudentResponse.model_validate(profile.student),
        active_loans=[_view(v) for v in profile.active_loans],
        total_outstanding_fine=profile.total_outstanding_fine,
    )


@router.post("/fines/settle", response_model=SettleFineResponse)
async def settle_fines(
    body: StudentTokenRequest,
    staff: CurrentStaff = Depends(get_current_staff),
    svc: CirculationService = Depends(get_circulation_service),
):
    settled = await svc.settle_fines(body.student_token)
    logger.info("Fine settlement recorded", settled_count=settled, staff=staff.sub)
    return SettleFineResponse(settled_count=settled)


@router.get("/fines/queue", response_model=List[LoanViewResponse])
async def fine_queue(ledger: LoanLedger = Depends(get_loan_ledger)):
    """Overdue, unreturned loans with live fines, oldest due date first."""
    return [_view(v) for v in await ledger.list_fine_queue()]


@router.get("/loans/active/count", response_model=ActiveLoanCountResponse)
async def active_loan_count(ledger: LoanLedger = Depends(get_loan_ledger)):
    return ActiveLoanCountResponse(active_loans=await ledger.count_active_loans())


@router.get("/activities", response_model=List[LoanViewResponse])
async def recent_activities(
    limit: int = Query(default=50, ge=1, le=200),
    ledger: LoanLedger = Depends(get_loan_ledger),
):
    """Most recently touched loans (borrows, returns, fine changes)."""
    return [_view(v) for v in await ledger.list_recent_activity(limit)]


@router.get("/loans", response_model=LoanHistoryResponse)
async def loan_history(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    ledger: LoanLedger = Depends(get_loan_ledger),
):
    """Every borrow record, newest first, with the borrower's name."""
    page = await ledger.list_loan_history(skip=skip, limit=limit)
    return LoanHistoryResponse(
        loans=[_view(v) for v in page.views],
        total=page.total,
        skip=page.skip,
        limit=page.limit,
    )


@router.post("/sweep/run", response_model=SweepReportResponse)
async def run_overdue_sweep(
    staff: CurrentStaff = Depends(get_current_staff),
    sweep: OverdueSweep = Depends(get_overdue_sweep),
):
    logger.info("Manual overdue sweep requested", staff=staff.sub)
    report = await sweep.run_sweep()
    return SweepReportResponse(**report.as_dict())
