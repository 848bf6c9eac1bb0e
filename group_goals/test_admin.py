# test_admin.py
from datetime import date

import pytest
from django.urls import reverse

from group_goals.admin import render_daily_entries
from group_goals.ledger import record_daily_progress, set_target
from group_goals.models import GroupGoal, GroupGoalPeriod, GroupGoalProgress

pytestmark = pytest.mark.django_db

DAY_0 = date(2024, 1, 1)


class TestRenderDailyEntries:

    def test_newest_first(self):
        html = render_daily_entries({"2024-01-01": 3, "2024-01-02": 4.5})
        assert html.index("2024-01-02") < html.index("2024-01-01")
        assert "<li>2024-01-02: 4.50</li>" in html

    def test_empty_and_invalid(self):
        assert render_daily_entries({}) == "-"
        assert render_daily_entries(["bad"]) == ["bad"]


class TestGroupGoalAdmin:
    """Test the admin pages for group goals"""

    @pytest.mark.parametrize("name", [
        "admin:group_goals_groupgoal_changelist",
        "admin:group_goals_groupgoalperiod_changelist",
        "admin:group_goals_groupgoalprogress_changelist",
        "admin:core_group_changelist",
        "admin:goals_goal_changelist",
    ])
    def test_changelists_load(self, admin_client, period, name):
        response = admin_client.get(reverse(name))
        assert response.status_code == 200

    def test_period_page_shows_entries(self, admin_client, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        record_daily_progress(period, user, DAY_0, 4, today=DAY_0)

        response = admin_client.get(reverse("admin:group_goals_groupgoalperiod_change", args=[period.pk]))

        assert response.status_code == 200
        assert "2024-01-01: 4.00" in response.content.decode()

    def test_group_page_links_goals(self, admin_client, group, weekly_goal):
        response = admin_client.get(reverse("admin:core_group_change", args=[group.pk]))
        assert response.status_code == 200
        assert reverse("admin:group_goals_groupgoal_change", args=[weekly_goal.pk]) in response.content.decode()

    def test_preview_action_changes_nothing(self, admin_client, period, make_user):
        user = make_user("Pat", "Lee")
        set_target(period, user, 10)

        response = admin_client.post(
            reverse("admin:group_goals_groupgoalperiod_changelist"),
            {"action": "preview_transition", "_selected_action": [str(period.pk)]},
            follow=True,
        )

        assert response.status_code == 200
        messages = [str(m) for m in response.context["messages"]]
        assert any("penalties" in m for m in messages)
        period.refresh_from_db()
        assert period.is_active
        assert GroupGoalPeriod.objects.count() == 1

    def test_delete_removes_periods_and_progress(self, admin_client, weekly_goal, period, make_user):
        set_target(period, make_user(), 10)

        response = admin_client.post(
            reverse("admin:group_goals_groupgoal_delete", args=[weekly_goal.pk]),
            {"post": "yes"},
        )

        assert response.status_code == 302
        assert not GroupGoal.objects.exists()
        assert not GroupGoalPeriod.objects.exists()
        assert not GroupGoalProgress.objects.exists()
