from datetime import date

import pytest

from hrms.core.exceptions import AdvanceNoticeViolation, ClubbingConflict, InsufficientBalance, InvalidLeaveType
from hrms.services.policy import DEFAULT_POLICY, PolicyItem

def _policy_with(leave_engine, admin_user, **overrides):
    """Default policy with some items replaced, keyed by leave type key."""
    items = []
    for item in DEFAULT_POLICY:
        if item.key in overrides:
            item = item.model_copy(update=overrides[item.key])
        items.append(item)
    leave_engine.replace_policy(items, admin_user.email)

def test_valid_request(leave_engine, employee_user, set_balance):
    set_balance(employee_user, casual_leave=3)
    result = leave_engine.validate_application(employee_user, "Casual Leave", [date(2026, 9, 10)])
    assert result.valid
    assert result.days_count == 1
    assert result.to_dict()["can_override"] is False

def test_half_day_counts_half(leave_engine, employee_user, set_balance):
    set_balance(employee_user, sick_leave=0.5)
    result = leave_engine.validate_application(employee_user, "sick_leave", [date(2026, 9, 10)], is_half_day=True)
    assert result.valid
    assert result.days_count == 0.5

def test_unknown_leave_type(leave_engine, employee_user):
    result = leave_engine.validate_application(employee_user, "Moon Leave", [date(2026, 9, 10)])
    assert isinstance(result.errors[0], InvalidLeaveType)

def test_insufficient_balance(leave_engine, employee_user, set_balance):
    set_balance(employee_user, casual_leave=1)
    result = leave_engine.validate_application(
        employee_user, "Casual Leave", [date(2026, 9, 10), date(2026, 9, 11)]
    )
    assert not result.valid
    assert isinstance(result.errors[0], InsufficientBalance)
    assert result.can_override is False

def test_unpaid_leave_skips_balance_check(leave_engine, employee_user):
    dates = [date(2026, 9, d) for d in range(10, 15)]
    result = leave_engine.validate_application(employee_user, "Unpaid Leave", dates)
    assert result.valid
    assert result.days_count == 5

def test_advance_notice_can_be_overridden(leave_engine, admin_user, employee_user, set_balance):
    _policy_with(leave_engine, admin_user, earned_leave={"advance_days_required": 7})
    set_balance(employee_user, earned_leave=5)

    result = leave_engine.validate_application(employee_user, "Earned Leave", [date(2026, 9, 4)])
    assert isinstance(result.errors[0], AdvanceNoticeViolation)
    assert result.errors[0].details["notice_days"] == 3
    assert result.can_override is True

    forced = leave_engine.validate_application(employee_user, "Earned Leave", [date(2026, 9, 4)], force=True)
    assert forced.valid
    assert len(forced.warnings) == 1

    on_time = leave_engine.validate_application(employee_user, "Earned Leave", [date(2026, 9, 8)])
    assert on_time.valid

def test_force_does_not_bypass_hard_errors(leave_engine, admin_user, employee_user):
    _policy_with(leave_engine, admin_user, earned_leave={"advance_days_required": 7})
    result = leave_engine.validate_application(employee_user, "Earned Leave", [date(2026, 9, 4)], force=True)
    assert not result.valid
    assert isinstance(result.errors[0], InsufficientBalance)

def test_clubbing_blocks_adjacent_days(leave_engine, admin_user, employee_user, set_balance):
    _policy_with(leave_engine, admin_user, casual_leave={"clubbing_not_allowed_with": ["Sick Leave"]})
    set_balance(employee_user, casual_leave=3, sick_leave=3)
    leave_engine.submit_application(employee_user, "Sick Leave", [date(2026, 9, 10)])

    adjacent = leave_engine.validate_application(employee_user, "Casual Leave", [date(2026, 9, 11)])
    assert isinstance(adjacent.errors[0], ClubbingConflict)
    assert adjacent.errors[0].details["dates"] == ["2026-09-11"]
    assert adjacent.can_override is False

    apart = leave_engine.validate_application(employee_user, "Casual Leave", [date(2026, 9, 12)])
    assert apart.valid

def test_rejected_applications_do_not_club(leave_engine, admin_user, manager_user, employee_user, set_balance):
    _policy_with(leave_engine, admin_user, casual_leave={"clubbing_not_allowed_with": ["sick_leave"]})
    set_balance(employee_user, casual_leave=3, sick_leave=3)
    sick, _ = leave_engine.submit_application(employee_user, "Sick Leave", [date(2026, 9, 10)])
    leave_engine.act_on_application(sick.id, manager_user, "reject", "Not now")

    result = leave_engine.validate_application(employee_user, "Casual Leave", [date(2026, 9, 10)])
    assert result.valid

def test_submit_raises_first_error(leave_engine, employee_user):
    with pytest.raises(InsufficientBalance):
        leave_engine.submit_application(employee_user, "Casual Leave", [date(2026, 9, 10)])
