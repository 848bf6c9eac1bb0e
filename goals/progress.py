# goals/progress.py
from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Sum

from core.validators import ensure_not_future, ensure_total_fits, parse_amount
from .models import Goal, GoalProgress

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def is_goal_completed(goal):
    return goal.current_amount >= goal.target_amount


def completion_percentage(goal):
    if not goal.target_amount:
        return ZERO
    return min(HUNDRED, Decimal(goal.current_amount) / Decimal(goal.target_amount) * HUNDRED)


def remaining_amount(goal):
    return max(ZERO, Decimal(goal.target_amount) - Decimal(goal.current_amount))


def add_progress(goal, amount, on_date, today, note=""):
    """
    Log progress on a personal goal.

    The entry, the re-summed current_amount and the transition to
    'completed' are written in one transaction with the goal row locked.

    Args:
        goal: Goal instance
        amount: positive number
        on_date: date the progress was made
        today: caller's reference date; later dates are rejected
        note: optional free text

    Returns:
        Goal: the refreshed goal
    """
    amount = parse_amount(amount)
    ensure_not_future(on_date, today)

    with transaction.atomic():
        locked = Goal.objects.select_for_update().get(pk=goal.pk)
        # checked before the insert: the re-sum below can't read back an oversized total
        ensure_total_fits(locked.current_amount + amount, amount)

        GoalProgress.objects.create(goal=locked, amount=amount, note=note or "", date=on_date)

        # re-sum every write instead of incrementing so the total can't drift
        total = locked.progress.aggregate(total=Sum("amount"))["total"] or ZERO
        locked.current_amount = total
        update_fields = ["current_amount"]

        if is_goal_completed(locked) and locked.status != Goal.COMPLETED:
            locked.status = Goal.COMPLETED
            locked.completed_on = today
            update_fields += ["status", "completed_on"]
            logger.info(f"Goal {locked.pk} completed: {locked.current_amount}/{locked.target_amount} {locked.unit}")

        locked.save(update_fields=update_fields)

    logger.info(f"Added {amount} {locked.unit} to goal {locked.pk} on {on_date}")
    return locked


def restart_goal(goal):
    """Clear all progress and put the goal back to 'active'."""
    with transaction.atomic():
        locked = Goal.objects.select_for_update().get(pk=goal.pk)
        deleted, _ = locked.progress.all().delete()
        locked.current_amount = ZERO
        locked.status = Goal.ACTIVE
        locked.completed_on = None
        locked.save(update_fields=["current_amount", "status", "completed_on"])

    logger.info(f"Restarted goal {locked.pk}, removed {deleted} progress entries")
    return locked
