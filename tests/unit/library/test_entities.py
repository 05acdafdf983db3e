from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from src.library.domain.entities import Item, Loan, Student
from src.library.domain.value_objects import ItemStatus, LoanMethod

T0 = datetime(2025, 3, 1, 0, 0, 0)
RATE = Decimal("10")


def test_student_number_format_enforced():
    Student(student_number="2024-0001", full_name="Juan Dela Cruz")
    with pytest.raises(ValueError):
        Student(student_number="24-1", full_name="Juan Dela Cruz")


def test_student_email_flag():
    assert Student(student_number="2024-0001", full_name="A", email="a@school.edu.ph").has_email
    assert not Student(student_number="2024-0002", full_name="B", email="  ").has_email


def test_item_copy_accounting():
    item = Item(title="Noli Me Tangere", accession_number="ACC-1", total_copies=2)
    assert item.available_copies == 2
    assert item.status is ItemStatus.AVAILABLE
    item.reconcile(2)
    assert item.available_copies == 0
    assert item.status is ItemStatus.BORROWED
    item.reconcile(5)
    assert item.available_copies == 0
    item.reconcile(-1)
    assert item.available_copies == 2


def test_item_requires_at_least_one_copy():
    with pytest.raises(ValueError):
        Item(title="X", accession_number="ACC-2", total_copies=0)


def test_loan_open_sets_due_date():
    loan = Loan.open("s" * 24, "i" * 24, T0, 7, LoanMethod.QR)
    assert loan.due_date == T0 + timedelta(days=7)
    assert loan.method is LoanMethod.QR
    assert not loan.returned
    assert loan.fine_accrued == 0


def test_observe_fine_reports_changes_only():
    loan = Loan.open("s" * 24, "i" * 24, T0, 7)
    assert loan.observe_fine(T0 + timedelta(days=5), RATE) is False
    assert loan.observe_fine(T0 + timedelta(days=9), RATE) is True
    assert loan.fine_accrued == Decimal("20")
    assert loan.observe_fine(T0 + timedelta(days=9, hours=-1), RATE) is False


def test_close_freezes_fine():
    loan = Loan.open("s" * 24, "i" * 24, T0, 7)
    returned_at = T0 + timedelta(days=8, hours=2)
    loan.close(returned_at, RATE)
    assert loan.returned and loan.returned_at == returned_at
    assert loan.fine_accrued == Decimal("20")

    later = T0 + timedelta(days=30)
    assert loan.observe_fine(later, RATE) is False
    assert loan.current_fine(later, RATE) == Decimal("20")
    assert loan.days_overdue(later) == 2


def test_settle_pays_outstanding():
    loan = Loan.open("s" * 24, "i" * 24, T0, 7)
    loan.close(T0 + timedelta(days=9), RATE)
    assert loan.outstanding_fine == Decimal("20")
    assert loan.settle(T0 + timedelta(days=9)) is True
    assert loan.outstanding_fine == 0
    assert loan.settle(T0 + timedelta(days=10)) is False


def test_notice_needed_once_per_day():
    loan = Loan.open("s" * 24, "i" * 24, T0, 7)
    today = date(2025, 3, 11)
    assert loan.needs_notice(today)
    loan.record_notification(today, T0 + timedelta(days=10))
    assert not loan.needs_notice(today)
    assert loan.needs_notice(date(2025, 3, 12))
