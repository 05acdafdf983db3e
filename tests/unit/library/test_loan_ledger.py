import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from src.library.domain.exceptions import (
    AlreadyBorrowedError,
    AlreadyReturnedError,
    ItemNotFoundError,
    LoanNotFoundError,
    NoCopiesAvailableError,
    StudentNotFoundError,
)
from src.library.domain.value_objects import LoanMethod

T0 = datetime(2025, 3, 1, 0, 0, 0)


async def test_normal_cycle_without_fine(container, clock, make_student, make_item):
    student = await make_student()
    item = await make_item(total_copies=1)
    ledger = container.ledger

    loan = await ledger.open_loan(student.id, item.id, LoanMethod.QR)
    assert loan.due_date == T0 + timedelta(days=7)
    assert (await container.catalog.get_item(item.id)).available_copies == 0
    assert (await container.catalog.get_student(student.id)).active_loan_ids == [loan.id]

    clock.advance(days=3)
    closed = await ledger.close_loan(loan.id)
    assert closed.returned
    assert closed.returned_at == T0 + timedelta(days=3)
    assert closed.fine_accrued == 0
    assert (await container.catalog.get_item(item.id)).available_copies == 1
    assert await ledger.count_active_loans() == 0


async def test_double_borrow_rejected(container, make_student, make_item):
    student = await make_student()
    item = await make_item(total_copies=3)
    first = await container.ledger.open_loan(student.id, item.id)

    with pytest.raises(AlreadyBorrowedError) as exc:
        await container.ledger.open_loan(student.id, item.id)
    assert exc.value.details["loan_id"] == first.id
    assert (await container.catalog.get_item(item.id)).available_copies == 2


async def test_no_copies_left(container, make_student, make_item):
    item = await make_item(total_copies=1)
    first, second = await make_student(), await make_student()
    await container.ledger.open_loan(first.id, item.id)

    with pytest.raises(NoCopiesAvailableError):
        await container.ledger.open_loan(second.id, item.id)


async def test_pair_check_wins_over_copy_check(container, make_student, make_item):
    student = await make_student()
    item = await make_item(total_copies=1)
    await container.ledger.open_loan(student.id, item.id)

    with pytest.raises(AlreadyBorrowedError):
        await container.ledger.open_loan(student.id, item.id)


async def test_unknown_student_or_item(container, make_student, make_item):
    student = await make_student()
    item = await make_item()
    with pytest.raises(StudentNotFoundError):
        await container.ledger.open_loan("0" * 24, item.id)
    with pytest.raises(ItemNotFoundError):
        await container.ledger.open_loan(student.id, "0" * 24)
    with pytest.raises(LoanNotFoundError):
        await container.ledger.close_loan("0" * 24)


async def test_return_freezes_fine(container, clock, make_student, make_item):
    student = await make_student()
    item = await make_item()
    loan = await container.ledger.open_loan(student.id, item.id)

    clock.advance(days=9, hours=1)
    closed = await container.ledger.close_loan(loan.id)
    assert closed.fine_accrued == Decimal("30")

    clock.advance(days=20)
    stored = await container.ledger.get_loan(loan.id)
    assert stored.fine_accrued == Decimal("30")
    assert await container.ledger.outstanding_for_student(student.id) == Decimal("30")

    with pytest.raises(AlreadyReturnedError):
        await container.ledger.close_loan(loan.id)


async def test_item_can_be_borrowed_again_after_return(container, make_student, make_item):
    student = await make_student()
    item = await make_item()
    loan = await container.ledger.open_loan(student.id, item.id)
    await container.ledger.close_loan(loan.id)

    again = await container.ledger.open_loan(student.id, item.id)
    assert again.id != loan.id


async def test_concurrent_borrows_stay_within_copy_count(container, make_student, make_item):
    item = await make_item(total_copies=2)
    students = [await make_student() for _ in range(6)]

    results = await asyncio.gather(
        *(container.ledger.open_loan(s.id, item.id) for s in students),
        return_exceptions=True,
    )
    opened = [r for r in results if not isinstance(r, Exception)]
    refused = [r for r in results if isinstance(r, NoCopiesAvailableError)]
    assert len(opened) == 2
    assert len(refused) == 4

    await asyncio.gather(*(container.ledger.close_loan(loan.id) for loan in opened))
    stored = await container.catalog.get_item(item.id)
    assert stored.available_copies == 2
    assert await container.ledger.count_active_loans() == 0


async def test_settle_marks_fines_paid(container, clock, make_student, make_item):
    student = await make_student()
    first, second, third = await make_item(), await make_item(), await make_item()
    await container.ledger.open_loan(student.id, first.id)
    late = await container.ledger.open_loan(student.id, second.id)
    await container.ledger.open_loan(student.id, third.id)

    clock.advance(days=8, hours=12)
    await container.ledger.close_loan(late.id)
    assert await container.ledger.outstanding_for_student(student.id) == Decimal("60")

    settled = await container.ledger.settle_fine(student.id)
    assert settled == 3
    assert await container.ledger.outstanding_for_student(student.id) == 0

    clock.advance(days=1)
    assert await container.ledger.outstanding_for_student(student.id) == Decimal("20")


async def test_settle_unknown_student(container):
    with pytest.raises(StudentNotFoundError):
        await container.ledger.settle_fine("0" * 24)


async def test_fine_queue_and_activity(container, clock, make_student, make_item):
    student = await make_student()
    first, second = await make_item(title="First"), await make_item(title="Second")
    await container.ledger.open_loan(student.id, first.id)
    clock.advance(days=1)
    await container.ledger.open_loan(student.id, second.id)

    assert await container.ledger.list_fine_queue() == []

    clock.advance(days=8)
    queue = await container.ledger.list_fine_queue()
    assert [v.item_title for v in queue] == ["First", "Second"]
    assert [v.fine for v in queue] == [Decimal("20"), Decimal("10")]

    recent = await container.ledger.list_recent_activity(limit=1)
    assert len(recent) == 1
    assert recent[0].item_title == "Second"


async def test_loan_history_pages_newest_borrow_first(container, clock, make_student, make_item):
    ana = await make_student(full_name="Ana Reyes")
    ben = await make_student(full_name="Ben Cruz")
    first = await container.ledger.open_loan(ana.id, (await make_item(title="First")).id)
    clock.advance(hours=1)
    second = await container.ledger.open_loan(ben.id, (await make_item(title="Second")).id)
    clock.advance(hours=1)
    await container.ledger.close_loan(first.id)
    third = await container.ledger.open_loan(ana.id, (await make_item(title="Third")).id)

    page = await container.ledger.list_loan_history(skip=0, limit=2)
    assert page.total == 3
    assert [v.loan.id for v in page.views] == [third.id, second.id]
    assert [v.student_name for v in page.views] == ["Ana Reyes", "Ben Cruz"]

    page = await container.ledger.list_loan_history(skip=2, limit=2)
    assert [v.loan.id for v in page.views] == [first.id]
    assert page.views[0].loan.returned is True
    assert page.views[0].item_title == "First"
