from hrms.core.config import SchedulerSettings
from hrms.services.scheduler import (
    MONTHLY_CREDIT_JOB_ID,
    create_scheduler,
    get_scheduler_status,
    run_monthly_credit,
)

def test_scheduler_registers_monthly_credit(session_factory):
    scheduler = create_scheduler(session_factory, SchedulerSettings(enabled=True, timezone="UTC"))
    status = get_scheduler_status(scheduler)
    assert status["running"] is False
    assert [job["id"] for job in status["jobs"]] == [MONTHLY_CREDIT_JOB_ID]

def test_status_without_scheduler():
    assert get_scheduler_status(None) == {"running": False, "jobs": []}

def test_scheduled_run_uses_its_own_session(db_session, session_factory, employee_user):
    code = employee_user.employee_id
    db_session.commit()

    results = run_monthly_credit(session_factory, "UTC")

    assert results["processed"] == 2
    assert code in [c["employee_id"] for c in results["credited"]]
