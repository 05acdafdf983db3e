from datetime import date, datetime, timedelta
from decimal import Decimal

T0 = datetime(2025, 3, 1, 0, 0, 0)  # 08:00 in Manila


async def _overdue_loan(container, make_student, make_item, **student_fields):
    student = await make_student(**student_fields)
    item = await make_item()
    return await container.ledger.open_loan(student.id, item.id)


async def test_nothing_to_do_before_due(container, clock, make_student, make_item):
    await _overdue_loan(container, make_student, make_item)
    clock.advance(days=6)
    report = await container.sweep.run_sweep()
    assert report.scanned == 0
    assert report.notified == 0


async def test_overdue_cycle_one_notice_per_day(container, clock, gateway, make_student, make_item):
    loan = await _overdue_loan(container, make_student, make_item)

    clock.set(T0 + timedelta(days=10))
    report = await container.sweep.run_sweep()
    assert (report.scanned, report.fines_updated, report.notified) == (1, 1, 1)
    assert report.sweep_date == date(2025, 3, 11)
    assert gateway.overdue[-1]["days_overdue"] == 3
    assert gateway.overdue[-1]["fine_amount"] == Decimal("30")

    clock.set(T0 + timedelta(days=10, hours=1))
    report = await container.sweep.run_sweep()
    assert (report.fines_updated, report.notified, report.skipped) == (1, 0, 1)
    assert len(gateway.overdue) == 1
    assert (await container.ledger.get_loan(loan.id)).fine_accrued == Decimal("40")

    clock.set(T0 + timedelta(days=11))
    report = await container.sweep.run_sweep()
    assert report.notified == 1
    assert gateway.overdue[-1]["days_overdue"] == 4
    assert gateway.overdue[-1]["fine_amount"] == Decimal("40")
    assert (await container.ledger.get_loan(loan.id)).last_notification_date == date(2025, 3, 12)


async def test_failed_send_does_not_advance_notification_date(container, clock, gateway, make_student, make_item):
    loan = await _overdue_loan(container, make_student, make_item)
    clock.set(T0 + timedelta(days=10))

    gateway.fail = True
    report = await container.sweep.run_sweep()
    assert (report.failed, report.notified) == (1, 0)
    stored = await container.ledger.get_loan(loan.id)
    assert stored.last_notification_date is None
    assert stored.fine_accrued == Decimal("30")

    gateway.fail = False
    report = await container.sweep.run_sweep()
    assert report.notified == 1
    assert len(gateway.sent_overdue()) == 1



async def test_gateway_exception_is_isolated_to_its_loan(container, clock, gateway, make_student, make_item, monkeypatch):
    broken = await _overdue_loan(container, make_student, make_item, email="ana@school.edu.ph")
    healthy = await _overdue_loan(container, make_student, make_item)
    clock.set(T0 + timedelta(days=10))

    send = gateway.send_overdue_notice

    async def flaky_send(email, **kwargs):
        if email == "ana@school.edu.ph":
            raise ConnectionResetError("smtp connection dropped")
        return await send(email=email, **kwargs)

    monkeypatch.setattr(gateway, "send_overdue_notice", flaky_send)

    report = await container.sweep.run_sweep()
    assert (report.scanned, report.failed, report.notified) == (2, 1, 1)
    assert report.fines_updated == 2

    stored = await container.ledger.get_loan(broken.id)
    assert stored.last_notification_date is None
    assert stored.fine_accrued == Decimal("30")
    assert (await container.ledger.get_loan(healthy.id)).last_notification_date == date(2025, 3, 11)
    assert [c["email"] for c in gateway.overdue] == ["juan@school.edu.ph"]

async def test_student_without_email_is_skipped(container, clock, gateway, make_student, make_item):
    await _overdue_loan(container, make_student, make_item, email=None)
    await _overdue_loan(container, make_student, make_item)
    clock.set(T0 + timedelta(days=8))

    report = await container.sweep.run_sweep()
    assert report.scanned == 2
    assert report.fines_updated == 2
    assert report.notified == 1
    assert report.skipped == 1
    assert len(gateway.overdue) == 1


async def test_returned_loans_are_not_swept(container, clock, gateway, make_student, make_item):
    loan = await _overdue_loan(container, make_student, make_item)
    clock.set(T0 + timedelta(days=9))
    await container.ledger.close_loan(loan.id)

    clock.advance(days=1)
    report = await container.sweep.run_sweep()
    assert report.scanned == 0
    assert gateway.overdue == []
    assert (await container.ledger.get_loan(loan.id)).fine_accrued == Decimal("20")


async def test_report_as_dict(container, clock):
    report = await container.sweep.run_sweep()
    data = report.as_dict()
    assert data["sweep_date"] == "2025-03-01"
    assert data["finished_at"] is not None
    assert set(data) >= {"scanned", "fines_updated", "notified", "skipped", "failed"}
