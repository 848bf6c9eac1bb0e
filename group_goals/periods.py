# group_goals/periods.py
"""
Period transition scheduler.

Closes periods whose end date has passed, works out each participant's
penalty, opens the successor period and carries the penalties into it.
Each period is processed in its own transaction: a failure rolls that
period back (it stays active and is retried on the next run) without
touching the rest of the run.
"""
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional
import logging
import uuid

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.utils import timezone

from core.exceptions import PeriodTransitionFailure
from core.validators import ensure_total_fits
from .models import GroupGoal, GroupGoalPeriod, GroupGoalProgress
from . import penalties

logger = logging.getLogger(__name__)


@dataclass
class PenaltyCarryOver:
    user_id: int
    user_name: str
    amount: Decimal


@dataclass
class PeriodSummary:
    total_participants: int = 0
    completed_participants: int = 0
    average_completion: Decimal = Decimal("0.0")

    @property
    def completion_rate(self):
        if not self.total_participants:
            return 0.0
        return round(self.completed_participants / self.total_participants * 100, 1)


@dataclass
class PeriodOutcome:
    period_id: uuid.UUID
    goal_id: uuid.UUID
    goal_name: str
    unit: str
    start_date: object
    end_date: object
    summary: PeriodSummary
    penalties: List[PenaltyCarryOver] = field(default_factory=list)
    next_start_date: Optional[object] = None
    next_end_date: Optional[object] = None
    successor_id: Optional[uuid.UUID] = None
    applied: bool = False

    @property
    def total_penalty(self):
        return sum((p.amount for p in self.penalties), Decimal("0.00"))

    @property
    def opens_successor(self):
        return self.next_start_date is not None


@dataclass
class TransitionReport:
    today: object
    dry_run: bool = False
    outcomes: List[PeriodOutcome] = field(default_factory=list)
    failures: List[PeriodTransitionFailure] = field(default_factory=list)
    skipped: int = 0

    @property
    def processed_count(self):
        return len(self.outcomes)

    @property
    def failed_count(self):
        return len(self.failures)


def cadence_end(start_date, period_type):
    """End date of a period starting on `start_date`: one week or one calendar month later."""
    if period_type == GroupGoal.WEEKLY:
        return start_date + timedelta(weeks=1)
    if period_type == GroupGoal.MONTHLY:
        return start_date + relativedelta(months=1)
    raise ValueError(f"Unknown period type: {period_type!r}")


def next_period_bounds(end_date, period_type):
    """
    Successor of a period ending on `end_date`.

    The successor starts the day after `end_date` and runs one cadence from there.
    """
    next_start = end_date + timedelta(days=1)
    return next_start, cadence_end(next_start, period_type)


def summarize_period(progress_rows):
    rows = list(progress_rows)
    if not rows:
        return PeriodSummary()
    completed = sum(
        1 for p in rows
        if penalties.is_completed(p.current_amount, penalties.effective_target(p))
    )
    average = sum((penalties.completion_percentage(p) for p in rows), Decimal("0")) / len(rows)
    return PeriodSummary(
        total_participants=len(rows),
        completed_participants=completed,
        average_completion=average.quantize(Decimal("0.1")),
    )


def find_ended_periods(today):
    return (
        GroupGoalPeriod.objects
        .filter(is_active=True, end_date__lt=today)
        .select_related("group_goal")
        .order_by("end_date")
    )


def _plan(period, progress_rows, today):
    goal = period.group_goal
    carry_overs = []
    for progress in progress_rows:
        penalty = penalties.compute_penalty(progress, period, today)
        if penalty > 0:
            carry_overs.append(PenaltyCarryOver(
                user_id=progress.user_id,
                user_name=progress.user.full_name,
                amount=penalty,
            ))

    outcome = PeriodOutcome(
        period_id=period.pk,
        goal_id=goal.pk,
        goal_name=goal.name,
        unit=goal.unit,
        start_date=period.start_date,
        end_date=period.end_date,
        summary=summarize_period(progress_rows),
        penalties=carry_overs,
    )
    # a deactivated goal gets its last period closed but no successor
    if goal.is_active:
        outcome.next_start_date, outcome.next_end_date = next_period_bounds(period.end_date, goal.period_type)
    return outcome


def preview_period_transition(period, today):
    """What closing `period` on `today` would do. Reads only."""
    rows = list(period.progress.select_related("user"))
    return _plan(period, rows, today)


def _open_successor(goal, start_date, end_date):
    successor = (
        GroupGoalPeriod.objects.select_for_update()
        .filter(group_goal=goal, start_date=start_date)
        .first()
    )
    if successor is None:
        return GroupGoalPeriod.objects.create(
            group_goal=goal,
            start_date=start_date,
            end_date=end_date,
            is_active=True,
        )

    # adopt the upcoming period created by schedule_next_period
    if successor.is_closed:
        raise ValueError(f"Successor period {successor.pk} starting {start_date} is already closed")
    successor.is_active = True
    successor.end_date = end_date
    successor.save(update_fields=["is_active", "end_date"])
    return successor


def _carry_penalty(successor, carry):
    progress = (
        GroupGoalProgress.objects.select_for_update()
        .filter(period=successor, user_id=carry.user_id)
        .first()
    )
    carried = (progress.penalty_carry_over if progress else Decimal("0.00")) + carry.amount
    # raises InvalidAmountError; the whole close rolls back and is reported as a failure
    ensure_total_fits(carried, carry.amount)

    if progress is None:
        return GroupGoalProgress.objects.create(
            period=successor,
            user_id=carry.user_id,
            target_amount=Decimal("0.00"),  # participant still sets their own target
            current_amount=Decimal("0.00"),
            penalty_carry_over=carried,
            is_completed=False,
        )

    progress.penalty_carry_over = carried
    progress.is_completed = penalties.is_completed(
        progress.current_amount, penalties.effective_target(progress)
    )
    progress.save(update_fields=["penalty_carry_over", "is_completed", "updated_at"])
    return progress


def close_period(period, today, closed_at):
    """
    Close one ended period and open its successor, atomically.

    Returns:
        PeriodOutcome, or None when another run already closed the period
    """
    with transaction.atomic():
        locked = (
            GroupGoalPeriod.objects.select_for_update()
            .select_related("group_goal")
            .get(pk=period.pk)
        )
        if not locked.is_active:
            logger.info(f"Period {locked.pk} already closed - skipping")
            return None

        rows = list(
            GroupGoalProgress.objects.select_for_update()
            .filter(period=locked)
            .select_related("user")
        )
        outcome = _plan(locked, rows, today)

        locked.is_active = False
        locked.closed_at = closed_at
        locked.save(update_fields=["is_active", "closed_at"])
        logger.info(f"Closed period {locked.pk} ({locked.start_date} - {locked.end_date}) of goal {locked.group_goal.name}")

        if outcome.opens_successor:
            successor = _open_successor(locked.group_goal, outcome.next_start_date, outcome.next_end_date)
            for carry in outcome.penalties:
                _carry_penalty(successor, carry)
                logger.info(f"Carried penalty {carry.amount} for user {carry.user_id} into period {successor.pk}")
            outcome.successor_id = successor.pk
            logger.info(f"Opened period {successor.pk} ({successor.start_date} - {successor.end_date})")
        else:
            logger.info(f"Goal {locked.group_goal.name} is inactive - no successor period opened")

        outcome.applied = True
        return outcome


def process_ended_periods(today, dry_run=False, closed_at=None):
    """
    Process every active period that ended before `today`.

    Args:
        today: as-of date of the run
        dry_run: compute penalties and next boundaries without writing anything
        closed_at: timestamp recorded on closed periods (defaults to the start of `today`)

    Returns:
        TransitionReport
    """
    if closed_at is None:
        closed_at = timezone.make_aware(datetime.combine(today, time.min))

    report = TransitionReport(today=today, dry_run=dry_run)
    candidates = list(find_ended_periods(today))
    logger.info(f"Found {len(candidates)} ended period(s) as of {today} (dry_run={dry_run})")

    for period in candidates:
        try:
            if dry_run:
                outcome = preview_period_transition(period, today)
            else:
                outcome = close_period(period, today, closed_at)
        except Exception as e:
            logger.exception(f"Error processing period {period.pk} of goal {period.group_goal.name}")
            report.failures.append(PeriodTransitionFailure(period.pk, period.group_goal.name, str(e)))
            continue

        if outcome is None:
            report.skipped += 1
        else:
            report.outcomes.append(outcome)

    return report
