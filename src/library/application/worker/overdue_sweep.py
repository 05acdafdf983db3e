"""Overdue sweep: refresh fines on overdue loans and send at most one notice per loan per day."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from src.library.domain.exceptions import NotificationFailedError
from src.library.domain.protocols.notification_gateway import NotificationGateway
from src.library.domain.protocols.unit_of_work import CirculationUnitOfWork
from src.shared.exceptions import TransientError
from src.shared.logging import get_logger, time_block
from src.shared.utils.clock import Clock, local_date, utcnow

logger = get_logger(__name__)


@dataclass
class SweepReport:
    started_at: datetime
    sweep_date: date
    scanned: int = 0
    fines_updated: int = 0
    notified: int = 0
    skipped: int = 0
    failed: int = 0
    finished_at: Optional[datetime] = field(default=None)

    def as_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "sweep_date": self.sweep_date.isoformat(),
            "scanned": self.scanned,
            "fines_updated": self.fines_updated,
            "notified": self.notified,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class OverdueSweep:
    """
    Batch job over unreturned loans that are past due at sweep start.

    Per loan, in its own transaction:
      - recompute the fine and persist it only when it changed;
      - send an overdue notice unless one already went out today
        (library timezone);
      - advance `last_notification_date` only when the gateway reports success.

    A failure on one loan is logged and counted; the sweep moves on.
    """

    def __init__(
        self,
        uow_factory: Callable[[], CirculationUnitOfWork],
        gateway: NotificationGateway,
        *,
        fine_per_day: Decimal,
        timezone: ZoneInfo,
        clock: Clock = utcnow,
    ):
        self._uow_factory = uow_factory
        self._gateway = gateway
        self.fine_per_day = Decimal(fine_per_day)
        self.timezone = timezone
        self._clock = clock

    async def run_sweep(self) -> SweepReport:
        now = self._clock()
        report = SweepReport(started_at=now, sweep_date=local_date(now, self.timezone))
        log = logger.bind(job="overdue_sweep", sweep_date=report.sweep_date.isoformat())

        with time_block("overdue_sweep.run", logger=log):
            try:
                async with self._uow_factory() as uow:
                    loan_ids = await uow.loans.list_overdue_ids(now)
            except Exception:
                log.exception("Overdue sweep could not list loans")
                report.failed += 1
                report.finished_at = self._clock()
                return report

            report.scanned = len(loan_ids)
            for loan_id in loan_ids:
                try:
                    await self._process(loan_id, now, report)
                except TransientError as e:
                    report.failed += 1
                    log.warning("Overdue sweep transient failure", loan_id=loan_id, code=e.code, details=e.details)
                except Exception:
                    report.failed += 1
                    log.exception("Overdue sweep failed on loan", loan_id=loan_id)

        report.finished_at = self._clock()
        log.info("Overdue sweep finished", **report.as_dict())
        return report

    async def _process(self, loan_id: str, now: datetime, report: SweepReport) -> None:
        today = report.sweep_date
        async with self._uow_factory() as uow:
            loan = await uow.loans.get_by_id(loan_id)
            if loan is None or loan.returned:
                # returned between listing and processing
                report.skipped += 1
                return

            if loan.observe_fine(now, self.fine_per_day):
                # the fine stands even if the notice below fails
                await uow.loans.update(loan)
                await uow.commit()
                report.fines_updated += 1

            if not loan.needs_notice(today):
                report.skipped += 1
                return

            student = await uow.students.get_by_id(loan.student_id)
            if student is None or not student.has_email:
                logger.warning(
                    "Overdue notice skipped: no email on file",
                    loan_id=loan.id,
                    student_id=loan.student_id,
                )
                report.skipped += 1
                return

            item = await uow.items.get_by_id(loan.item_id)
            days = loan.days_overdue(now)
            result = await self._gateway.send_overdue_notice(
                email=student.email or "",
                student_name=student.full_name,
                item_title=item.title if item else "Unknown item",
                item_author=item.author if item else None,
                days_overdue=days,
                fine_amount=loan.fine_accrued,
            )

            if not result.success:
                # retried on the next run
                raise NotificationFailedError(
                    details={"loan_id": loan.id, "student_id": loan.student_id, "error": result.error}
                )

            loan.record_notification(today, now)
            await uow.loans.update(loan)
            await uow.commit()
            report.notified += 1
            logger.info(
                "Overdue notice sent",
                loan_id=loan.id,
                student_id=loan.student_id,
                days_overdue=days,
                fine_amount=str(loan.fine_accrued),
                message_id=result.message_id,
            )
