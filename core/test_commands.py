# test_commands.py
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from group_goals.ledger import record_daily_progress, set_target
from group_goals.models import GroupGoalPeriod, GroupGoalProgress

pytestmark = pytest.mark.django_db

DAY_0 = date(2024, 1, 1)


def run(*args):
    out = StringIO()
    call_command("process_group_goal_periods", *args, stdout=out)
    return out.getvalue()


class TestProcessGroupGoalPeriods:
    """Test the daily period processing command"""

    def test_nothing_to_process(self, period):
        output = run("--as-of", "2024-01-08")
        assert "No periods to process" in output

    def test_closes_and_reports(self, weekly_goal, period, make_user):
        user = make_user("Sam", "Walker")
        set_target(period, user, 50)
        record_daily_progress(period, user, DAY_0, 30, today=DAY_0)

        output = run("--as-of", "2024-01-09")

        assert "Processing period for goal: Run" in output
        assert "Closed period: Jan 01 - Jan 08, 2024" in output
        assert "Sam Walker missed target by 20.00 miles" in output
        assert "Created next period: Jan 09 - Jan 16, 2024" in output
        assert "0/1 completed (0.0%)" in output
        assert "Closed: 1" in output

        period.refresh_from_db()
        assert not period.is_active
        successor = weekly_goal.current_period
        assert GroupGoalProgress.objects.get(period=successor, user=user).penalty_carry_over == Decimal("20.00")

    def test_dry_run(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)

        output = run("--dry-run", "--as-of", "2024-01-09")

        assert "DRY RUN MODE" in output
        assert "Would close period" in output
        assert "Would close: 1" in output
        period.refresh_from_db()
        assert period.is_active
        assert GroupGoalPeriod.objects.count() == 1

    def test_inactive_goal(self, weekly_goal, period):
        weekly_goal.is_active = False
        weekly_goal.save()

        output = run("--as-of", "2024-01-09")

        assert "Goal is inactive - no next period" in output

    def test_invalid_as_of(self):
        with pytest.raises(CommandError):
            run("--as-of", "09/01/2024")

    def test_defaults_to_current_date(self, period):
        output = run()
        assert "Closed: 1" in output
        period.refresh_from_db()
        assert period.closed_at is not None
        assert period.closed_at.date() >= DAY_0 + timedelta(days=8)
