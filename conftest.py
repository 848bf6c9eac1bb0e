# conftest.py
from datetime import date
import itertools

import pytest

from core.models import CustomUser, Group
from group_goals.lifecycle import create_group_goal
from group_goals.models import GroupGoal

DAY_0 = date(2024, 1, 1)

_emails = itertools.count(1)


@pytest.fixture
def make_user(db):
    def _make_user(first_name="Test", last_name="User", **kwargs):
        email = kwargs.pop("email", f"user{next(_emails)}@example.com")
        return CustomUser.objects.create_user(
            email=email,
            password="testpass123",
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )
    return _make_user


@pytest.fixture
def owner(make_user):
    return make_user("Group", "Owner")


@pytest.fixture
def group(owner):
    return Group.objects.create(name="Morning Runners", created_by=owner)


@pytest.fixture
def weekly_goal(group, owner):
    """Weekly goal whose first period spans DAY_0 to DAY_0 + 7"""
    return create_group_goal(group, "Run", "miles", GroupGoal.WEEKLY, created_by=owner, today=DAY_0)


@pytest.fixture
def period(weekly_goal):
    return weekly_goal.current_period
