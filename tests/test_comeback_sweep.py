import asyncio
import uuid
from datetime import date

import pytest

from compliance_service.app.crud.businesses.businesses_crud import add_business
from compliance_service.app.crud.cases.case_lifecycle_crud import decide_guilty_comeback
from compliance_service.app.crud.cases.cases_crud import open_case_for_business
from compliance_service.app.crud.scheduler.scheduler_service import ComebackScheduler, process_comeback_reminders
from compliance_service.app.enum.system_enum import NotificationType
from compliance_service.app.models import Case, Notification

from conftest import TODAY


@pytest.fixture()
def comeback_case(db, officer_id):
    business = add_business(db, {"business_name": "Acme", "owner_name": "Ali"}, officer_id, TODAY)
    _, case = open_case_for_business(db, business, officer_id, case_text="EVC", today=TODAY)
    db.commit()
    return decide_guilty_comeback(db, case.id, date(2025, 1, 20), officer_id)


def test_case_not_due_yet(db, comeback_case):
    result = process_comeback_reminders(db, date(2025, 1, 19))

    assert result.checked == 0
    assert db.query(Notification).count() == 0


def test_due_case_notified_exactly_once(db, comeback_case, officer_id):
    first = process_comeback_reminders(db, date(2025, 1, 20))
    second = process_comeback_reminders(db, date(2025, 1, 25))

    assert first.checked == 1
    # assigned officer and check-in officer are the same person
    assert first.notifications == 1
    assert second.checked == 0

    notification = db.query(Notification).one()
    assert notification.user_id == officer_id
    assert notification.case_id == comeback_case.id
    assert notification.type == NotificationType.COMEBACK_REMINDER
    db.refresh(comeback_case)
    assert comeback_case.comeback_notification_sent is True


def test_assigned_and_check_in_officers_both_notified(db, comeback_case, officer_id):
    supervisor = uuid.uuid4()
    comeback_case.assigned_officer_id = supervisor
    db.commit()

    result = process_comeback_reminders(db, date(2025, 1, 21))

    assert result.notifications == 2
    recipients = {n.user_id for n in db.query(Notification).all()}
    assert recipients == {supervisor, officer_id}


def test_scheduler_uses_injected_clock(session_factory, comeback_case):
    scheduler = ComebackScheduler(session_factory, interval_seconds=60,
                                  clock=lambda: date(2025, 1, 19))
    assert scheduler.run_once().checked == 0

    scheduler.clock = lambda: date(2025, 1, 20)
    assert scheduler.run_once().notifications == 1


def test_scheduler_loop_runs_sweep_and_stops(session_factory, db, comeback_case):
    scheduler = ComebackScheduler(session_factory, interval_seconds=3600,
                                  clock=lambda: date(2025, 2, 1))

    async def _go():
        scheduler.start()
        assert scheduler.running
        await scheduler.stop()

    asyncio.run(_go())

    assert not scheduler.running
    assert db.query(Notification).count() == 1
    assert db.query(Case).filter(Case.comeback_notification_sent.is_(True)).count() == 1
