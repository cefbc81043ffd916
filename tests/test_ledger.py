from datetime import date

import pytest

from hrms.core.exceptions import InsufficientBalance, InvalidAdjustment, InvalidLeaveType
from hrms.models.ledger_log import LeaveAdjustmentLog

def test_debit_is_guarded(leave_engine, employee_user, set_balance):
    set_balance(employee_user, casual_leave=1.5)

    assert leave_engine.ledger.debit(employee_user.id, "Casual Leave", 1) == 0.5
    with pytest.raises(InsufficientBalance) as exc:
        leave_engine.ledger.debit(employee_user.id, "casual_leave", 1)
    assert exc.value.available == 0.5
    assert exc.value.requested == 1
    assert leave_engine.ledger.available(employee_user.id, "casual_leave") == 0.5

def test_debit_half_day_to_zero(leave_engine, employee_user, set_balance):
    set_balance(employee_user, sick_leave=0.5)
    assert leave_engine.ledger.debit(employee_user.id, "sick_leave", 0.5) == 0

def test_unpaid_leave_never_touches_the_ledger(leave_engine, employee_user):
    assert leave_engine.ledger.debit(employee_user.id, "Unpaid Leave", 5) is None
    assert leave_engine.ledger.credit(employee_user.id, "unpaid_leave", 5) is None
    assert leave_engine.balance_for(employee_user) == {}

def test_credit_opens_missing_account(leave_engine, employee_user):
    assert leave_engine.ledger.credit(employee_user.id, "comp_off", 1) == 1
    assert leave_engine.balance_for(employee_user) == {"comp_off": 1}

def test_adjust_set_add_deduct(leave_engine, db_session, admin_user, employee_user, set_balance):
    set_balance(employee_user, casual_leave=2)

    result = leave_engine.adjust_balance(employee_user, "Casual Leave", "add", 1.5, "Carry over", admin_user.email)
    assert result["previous_balance"] == 2
    assert result["new_balance"] == 3.5

    result = leave_engine.adjust_balance(employee_user, "casual_leave", "deduct", 0.5, "Correction", admin_user.email)
    assert result["new_balance"] == 3

    result = leave_engine.adjust_balance(employee_user, "casual_leave", "set", 6, "Reset", admin_user.email)
    assert result["new_balance"] == 6

    logs = db_session.query(LeaveAdjustmentLog).filter(LeaveAdjustmentLog.scope == "individual").all()
    assert len(logs) == 3
    assert logs[0].performed_by == admin_user.email

def test_adjust_deduct_refuses_to_overdraw(leave_engine, db_session, admin_user, employee_user, set_balance):
    set_balance(employee_user, casual_leave=1)
    with pytest.raises(InsufficientBalance):
        leave_engine.adjust_balance(employee_user, "casual_leave", "deduct", 2, "Too much", admin_user.email)
    assert leave_engine.balance_for(employee_user)["casual_leave"] == 1
    assert db_session.query(LeaveAdjustmentLog).count() == 0

def test_adjust_rejects_unknown_type_and_action(leave_engine, admin_user, employee_user):
    with pytest.raises(InvalidLeaveType):
        leave_engine.adjust_balance(employee_user, "Sabbatical", "add", 1, "x", admin_user.email)
    with pytest.raises(InvalidAdjustment):
        leave_engine.adjust_balance(employee_user, "casual_leave", "double", 1, "x", admin_user.email)
    with pytest.raises(InvalidAdjustment):
        leave_engine.adjust_balance(employee_user, "casual_leave", "add", -1, "x", admin_user.email)

def test_bulk_deduct_clamps_at_zero(leave_engine, db_session, admin_user, employee_user, make_employee, set_balance):
    other = make_employee("EMP2000", "other@acme.test")
    set_balance(employee_user, casual_leave=3)
    set_balance(other, casual_leave=0.5)

    result = leave_engine.bulk_adjust("Casual Leave", "deduct", 1, "Company shutdown", admin_user.email)

    assert result["errors"] == []
    assert leave_engine.balance_for(employee_user)["casual_leave"] == 2
    assert leave_engine.balance_for(other)["casual_leave"] == 0
    bulk_logs = db_session.query(LeaveAdjustmentLog).filter(LeaveAdjustmentLog.scope == "bulk").all()
    assert len(bulk_logs) == 1
    assert bulk_logs[0].employee_id is None

def test_bulk_add_reaches_every_active_employee(leave_engine, admin_user, employee_user, manager_user):
    result = leave_engine.bulk_adjust("comp_off", "add", 1, "Weekend release", admin_user.email)
    # admin, manager and employee
    assert result["processed"] == 3
    assert leave_engine.balance_for(manager_user)["comp_off"] == 1
    assert leave_engine.balance_for(employee_user)["comp_off"] == 1

def test_recalculate_preserves_comp_off(leave_engine, admin_user, employee_user, set_balance):
    set_balance(employee_user, casual_leave=0, sick_leave=1, comp_off=2, legacy_leave=4)

    result = leave_engine.recalculate_balance(employee_user, admin_user.email, as_of=date(2026, 1, 15))

    balance = result["new_balance"]
    # Joined 2025-01-15: 12 full months by 2026-01-15
    assert balance["casual_leave"] == 6
    assert balance["sick_leave"] == 6
    assert balance["earned_leave"] == 12
    assert balance["comp_off"] == 2
    assert balance["legacy_leave"] == 0
    assert result["previous_balance"]["sick_leave"] == 1

def test_recalculate_opens_comp_off_account(leave_engine, admin_user, employee_user):
    result = leave_engine.recalculate_balance(employee_user, admin_user.email)
    assert result["new_balance"]["comp_off"] == 0

def test_recalculate_all_skips_employees_not_yet_joined(leave_engine, admin_user, employee_user, make_employee):
    newcomer = make_employee("EMP3000", "new@acme.test", joining_date=date(2026, 10, 1))

    result = leave_engine.recalculate_all(admin_user.email)

    assert [s["employee_id"] for s in result["skipped"]] == [newcomer.employee_id]
    assert len(result["initialized"]) == 3
    assert leave_engine.balance_for(newcomer) == {}

def test_balance_summary(leave_engine, employee_user, manager_user, set_balance):
    set_balance(employee_user, casual_leave=4)
    set_balance(manager_user, casual_leave=0)

    summary = leave_engine.balance_summary()

    casual = summary["leave_types"]["casual_leave"]
    assert summary["total_employees"] == 2
    assert casual["total"] == 4
    assert casual["average"] == 2
    assert casual["min"] == 0
    assert casual["max"] == 4
    assert casual["zero_balance_count"] == 1
