# group_goals/lifecycle.py
from django.db import transaction
import logging

from .models import GroupGoal, GroupGoalPeriod, GroupGoalProgress
from .periods import cadence_end, next_period_bounds

logger = logging.getLogger(__name__)


def create_group_goal(group, name, unit, period_type, created_by, today, description=""):
    """Create a group goal together with its first period, starting `today`."""
    if period_type not in dict(GroupGoal.PERIOD_CHOICES):
        raise ValueError(f"Unknown period type: {period_type!r}")

    with transaction.atomic():
        goal = GroupGoal.objects.create(
            group=group,
            name=name,
            description=description,
            unit=unit,
            period_type=period_type,
            created_by=created_by,
        )
        period = GroupGoalPeriod.objects.create(
            group_goal=goal,
            start_date=today,
            end_date=cadence_end(today, period_type),
        )

    logger.info(f"Created {period_type} goal {goal.name} for group {group.pk}, first period {period.start_date} - {period.end_date}")
    return goal


def deactivate_group_goal(goal):
    """
    Stop generating periods. The running period is still closed (and
    penalties reported) by the scheduler; upcoming periods would never be
    opened, so they are removed together with any targets set in them.
    """
    with transaction.atomic():
        goal.is_active = False
        goal.save(update_fields=["is_active"])
        upcoming = GroupGoalPeriod.objects.filter(group_goal=goal, is_active=False, closed_at__isnull=True)
        progress_deleted, _ = GroupGoalProgress.objects.filter(period__in=upcoming).delete()
        periods_deleted, _ = upcoming.delete()

    logger.info(
        f"Deactivated goal {goal.name} ({goal.pk}), removed {periods_deleted} upcoming period(s) "
        f"and {progress_deleted} progress row(s)"
    )
    return goal


def schedule_next_period(goal):
    """
    Pre-create the successor of the goal's active period so participants can
    set targets before rollover. The scheduler activates it when the current
    period closes.
    """
    if not goal.is_active:
        raise ValueError(f"Goal {goal.pk} is inactive; no further periods are opened")
    current = goal.current_period
    if current is None:
        raise ValueError(f"Goal {goal.pk} has no active period")

    start_date, end_date = next_period_bounds(current.end_date, goal.period_type)
    period, created = GroupGoalPeriod.objects.get_or_create(
        group_goal=goal,
        start_date=start_date,
        defaults={"end_date": end_date, "is_active": False},
    )
    if created:
        logger.info(f"Scheduled upcoming period {period.start_date} - {period.end_date} for goal {goal.name}")
    return period


def delete_group_goal(goal):
    """
    Delete a goal with its periods and their progress rows, in one transaction.

    Returns:
        dict: number of deleted progress rows and periods
    """
    with transaction.atomic():
        progress_deleted, _ = GroupGoalProgress.objects.filter(period__group_goal=goal).delete()
        periods_deleted, _ = GroupGoalPeriod.objects.filter(group_goal=goal).delete()
        goal.delete()

    logger.info(f"Deleted goal {goal.name}: {periods_deleted} period(s), {progress_deleted} progress row(s)")
    return {"progress": progress_deleted, "periods": periods_deleted}
