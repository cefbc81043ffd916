import pytest
from datetime import date

from hrms.models.leave_balance import LeaveBalance
from hrms.models.ledger_log import LeaveCreditLog
from hrms.services.credit_job import CREDIT_RULES, apply_rules, rules_from_policy
from hrms.services.policy import DEFAULT_POLICY, CreditType, PolicyItem

def test_january_resets_balances(leave_engine, employee_user, set_balance):
    set_balance(employee_user, casual_leave=2, sick_leave=4.5, earned_leave=11, comp_off=2)

    results = leave_engine.run_monthly_credit(date(2027, 1, 1))

    assert results["is_year_start_reset"] is True
    assert leave_engine.balance_for(employee_user) == {
        "casual_leave": 6,
        "sick_leave": 0.5,
        "earned_leave": 0,
        "comp_off": 2,
    }

def test_monthly_credit_respects_caps(leave_engine, employee_user, set_balance):
    set_balance(employee_user, casual_leave=2, sick_leave=5.8, earned_leave=12)

    results = leave_engine.run_monthly_credit(date(2026, 10, 1))

    assert results["is_year_start_reset"] is False
    balance = leave_engine.balance_for(employee_user)
    assert balance["casual_leave"] == 2
    assert balance["sick_leave"] == 6
    assert balance["earned_leave"] == 12

def test_monthly_credit_opens_missing_accounts(leave_engine, employee_user):
    leave_engine.run_monthly_credit(date(2026, 10, 1))
    assert leave_engine.balance_for(employee_user) == {"sick_leave": 0.5, "earned_leave": 1}

def test_balance_above_cap_is_never_reduced(leave_engine, employee_user, set_balance):
    set_balance(employee_user, earned_leave=14)
    leave_engine.run_monthly_credit(date(2026, 10, 1))
    assert leave_engine.balance_for(employee_user)["earned_leave"] == 14

def test_rerun_for_same_month_is_skipped(leave_engine, employee_user, set_balance):
    set_balance(employee_user, sick_leave=1, earned_leave=1)

    first = leave_engine.run_monthly_credit(date(2026, 10, 1))
    second = leave_engine.run_monthly_credit(date(2026, 10, 1))

    assert employee_user.employee_id in [c["employee_id"] for c in first["credited"]]
    assert second["credited"] == []
    assert {s["reason"] for s in second["skipped"]} == {"Already credited for 2026-10"}
    assert leave_engine.balance_for(employee_user) == {"sick_leave": 1.5, "earned_leave": 2}

    forced = leave_engine.run_monthly_credit(date(2026, 10, 1), force=True)
    assert len(forced["credited"]) == len(first["credited"])
    assert leave_engine.balance_for(employee_user) == {"sick_leave": 2, "earned_leave": 3}

def test_employees_not_yet_joined_are_skipped(leave_engine, employee_user, make_employee):
    newcomer = make_employee("EMP5000", "new@acme.test", joining_date=date(2026, 10, 10))

    results = leave_engine.run_monthly_credit(date(2026, 10, 1))

    assert results["processed"] == 3
    assert results["skipped"] == [{
        "employee_id": newcomer.employee_id,
        "name": newcomer.full_name,
        "reason": "Not yet joined",
    }]
    assert leave_engine.balance_for(newcomer) == {}

def test_one_failure_does_not_stop_the_run(leave_engine, monkeypatch, employee_user, manager_user):
    store = leave_engine.stores.employees
    original = store.increment_capped
    failing_id = employee_user.id

    def flaky(employee_id, *args):
        if employee_id == failing_id:
            raise RuntimeError("row locked")
        return original(employee_id, *args)

    monkeypatch.setattr(store, "increment_capped", flaky)
    results = leave_engine.run_monthly_credit(date(2026, 10, 1))

    assert results["errors"] == [{"employee_id": employee_user.employee_id, "error": "row locked"}]
    assert [c["employee_id"] for c in results["credited"]] == [manager_user.employee_id]
    assert leave_engine.balance_for(employee_user) == {}
    assert employee_user.last_credit_month is None

def test_credit_log_per_employee(leave_engine, db_session, employee_user):
    leave_engine.run_monthly_credit(date(2026, 10, 1))

    logs = leave_engine.credit_logs(employee_id=employee_user.id)
    assert len(logs) == 1
    assert logs[0].credit_month == 10
    assert logs[0].credit_year == 2026
    assert logs[0].new_balance == {"sick_leave": 0.5, "earned_leave": 1}
    assert db_session.query(LeaveCreditLog).count() == 2

def test_configured_policy_drives_rules(leave_engine, admin_user, employee_user, set_balance):
    leave_engine.replace_policy([
        PolicyItem(leave_type="Sick Leave", annual_quota=6, monthly_credit=0.5),
        PolicyItem(leave_type="Unpaid Leave"),
    ], admin_user.email)
    set_balance(employee_user, sick_leave=1)

    rules = leave_engine.credit_rules()
    assert [r.leave_type for r in rules] == ["sick_leave"]

    leave_engine.run_monthly_credit(date(2026, 10, 1))
    assert leave_engine.balance_for(employee_user) == {"sick_leave": 1.5}

def test_january_reset_under_saved_policy(leave_engine, admin_user, employee_user, set_balance):
    items = [
        item.model_copy(update={"year_start_credit": None}) if item.key == "sick_leave" else item
        for item in DEFAULT_POLICY
    ]
    leave_engine.replace_policy(items, admin_user.email)
    set_balance(employee_user, casual_leave=2, sick_leave=4.5, earned_leave=11, comp_off=2)

    leave_engine.run_monthly_credit(date(2027, 1, 1))

    assert leave_engine.balance_for(employee_user) == {
        "casual_leave": 6,
        "sick_leave": 0.5,
        "earned_leave": 0,
        "comp_off": 2,
    }

def test_saved_default_policy_matches_builtin_rules(leave_engine, admin_user):
    leave_engine.replace_policy(list(DEFAULT_POLICY), admin_user.email)
    assert leave_engine.credit_rules() == CREDIT_RULES

def test_january_reset_derived_when_not_configured():
    rules = {rule.leave_type: rule for rule in rules_from_policy([
        PolicyItem(leave_type="Casual Leave", annual_quota=6, monthly_credit=0.5),
        PolicyItem(leave_type="Sick Leave", annual_quota=6, monthly_credit=0.5),
        PolicyItem(leave_type="Earned Leave", annual_quota=12, monthly_credit=1),
        PolicyItem(leave_type="Study Leave", annual_quota=3, monthly_credit=0.25),
    ])}

    assert rules["casual_leave"].credit_type == CreditType.ANNUALLY
    assert rules["casual_leave"].credit == 6
    assert rules["sick_leave"].year_start_credit == 0.5
    assert rules["earned_leave"].year_start_credit == 0
    assert rules["study_leave"].credit == 0.3
    assert rules["study_leave"].year_start_credit == 0.3

def test_fractional_credit_is_stored_rounded(leave_engine, db_session, employee_user, set_balance):
    set_balance(employee_user, sick_leave=0.4)
    store = leave_engine.stores.employees

    store.increment_capped(employee_user.id, "sick_leave", 0.05, 6)
    stored = db_session.query(LeaveBalance.balance).filter(
        LeaveBalance.employee_id == employee_user.id,
        LeaveBalance.leave_type == "sick_leave",
    ).scalar()
    assert stored == pytest.approx(0.5)

    assert store.decrement_if_available(employee_user.id, "sick_leave", 0.5) is True
    assert store.decrement_if_available(employee_user.id, "sick_leave", 0.1) is False
    assert leave_engine.balance_for(employee_user) == {"sick_leave": 0}

def test_rules_from_default_policy_skip_zero_quota_annual_types():
    keys = [rule.leave_type for rule in rules_from_policy(DEFAULT_POLICY)]
    assert keys == ["casual_leave", "sick_leave", "earned_leave"]

def test_apply_rules_is_pure():
    balance = {"sick_leave": 1.0}
    updated, applied = apply_rules(balance, CREDIT_RULES, is_january=False)
    assert balance == {"sick_leave": 1.0}
    assert updated == {"sick_leave": 1.5, "earned_leave": 1}
    assert len(applied) == 2

def test_simulate_projects_through_january(leave_engine, employee_user, set_balance):
    set_balance(employee_user, casual_leave=3, sick_leave=1, earned_leave=2)

    result = leave_engine.simulate_credit(employee_user, date(2027, 2, 1))

    assert result["simulation"]["months_simulated"] == 5
    assert result["simulated_balance"] == {"casual_leave": 6, "sick_leave": 1.0, "earned_leave": 1}
    assert result["current_balance"] == {"casual_leave": 3, "sick_leave": 1, "earned_leave": 2}
    assert result["credit_details"][0].startswith("2026-10-01")
    # Nothing persisted
    assert leave_engine.balance_for(employee_user)["earned_leave"] == 2
