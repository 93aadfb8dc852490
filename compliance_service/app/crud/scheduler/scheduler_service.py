import asyncio
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session, joinedload

from ..system.notifications_crud import create_notification
from ...enum.case_enum import CaseStatus
from ...enum.system_enum import NotificationType
from ...models.cases.cases import Case
from ...schemas.system.notifications_schemas import ComebackSweepOut

logger = logging.getLogger(__name__)


def _recipients(case: Case):
    recipients = []
    for user_id in (case.assigned_officer_id,
                    case.check_in.officer_id if case.check_in else None):
        if user_id and user_id not in recipients:
            recipients.append(user_id)
    return recipients


def process_comeback_reminders(db: Session, today: Optional[date] = None) -> ComebackSweepOut:
    """
    Notify officers about pending-comeback cases that are due, once per case.

    The sent flag is latched in the same commit as the notifications; a new
    comeback decision clears it again.
    """
    today = today or date.today()

    due_cases = (
        db.query(Case)
        .options(joinedload(Case.check_in))
        .filter(
            Case.status == CaseStatus.PENDING_COMEBACK,
            Case.comeback_date.isnot(None),
            Case.comeback_date <= today,
            Case.comeback_notification_sent == False,
        )
        .order_by(Case.comeback_date)
        .all()
    )

    sent = 0
    for case in due_cases:
        try:
            for user_id in _recipients(case):
                create_notification(
                    db,
                    user_id=user_id,
                    case_id=case.id,
                    type=NotificationType.COMEBACK_REMINDER,
                    title=f"Comeback due: {case.case_number}",
                    message=(
                        f"Case {case.case_number} was scheduled for a comeback visit on "
                        f"{case.comeback_date.isoformat()}."
                    ),
                )
                sent += 1
            case.comeback_notification_sent = True
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Comeback reminder failed for case %s", case.id)

    if due_cases:
        logger.info("Comeback sweep %s: %d cases, %d notifications",
                    today.isoformat(), len(due_cases), sent)
    return ComebackSweepOut(run_date=today, checked=len(due_cases), notifications=sent)


class ComebackScheduler:
    """Runs the comeback sweep on a fixed interval for the lifetime of the app."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_seconds: int,
        clock: Callable[[], date] = date.today,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._task: Optional[asyncio.Task] = None
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> ComebackSweepOut:
        db = self.session_factory()
        try:
            return process_comeback_reminders(db, self.clock())
        finally:
            db.close()

    async def _loop(self):
        while True:
            try:
                await asyncio.to_thread(self.run_once)
            except Exception:
                logger.exception("Comeback sweep crashed")
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval_seconds)
                return
            except asyncio.TimeoutError:
                continue

    def start(self):
        if self.running:
            return
        self._stopped = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._loop(), name="comeback-sweep")
        logger.info("Comeback scheduler started (every %ss)",
                    self.interval_seconds)

    async def stop(self):
        if not self._task:
            return
        self._stopped.set()
        await self._task
        self._task = None
        logger.info("Comeback scheduler stopped")
