# group_goals/ledger.py
"""
Progress ledger for group goal periods.

The only code path that writes daily_entries and current_amount. Every write
runs in a transaction holding a row lock on the participant's progress row,
so two submissions for the same (period, user) can't lose each other.
"""
import logging
import time

from django.conf import settings
from django.db import OperationalError, transaction

from core.exceptions import ConcurrencyConflict, PeriodClosedError, TargetNotSetError
from core.validators import ensure_not_future, ensure_total_fits, parse_amount
from .models import GroupGoalPeriod, GroupGoalProgress
from . import penalties

logger = logging.getLogger(__name__)


def _ensure_open(period):
    # fresh read: the scheduler may have closed the period since the caller loaded it
    if GroupGoalPeriod.objects.filter(pk=period.pk, closed_at__isnull=False).exists():
        logger.warning(f"Rejected write to closed period {period.pk}")
        raise PeriodClosedError(period.pk)


def _with_row_lock(period, user, apply):
    """
    Run `apply` in its own transaction, retrying when the row lock can't be taken.

    Retries only happen when called outside any transaction. Inside a caller's
    transaction `apply` runs once in a savepoint and a lock failure surfaces
    as ConcurrencyConflict; the caller retries its whole transaction.
    """
    attempts = max(1, getattr(settings, 'LEDGER_LOCK_RETRIES', 3))
    delay = getattr(settings, 'LEDGER_RETRY_DELAY_SECONDS', 0.05)
    if transaction.get_connection().in_atomic_block:
        attempts = 1

    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return apply()
        except OperationalError as e:
            logger.warning(
                f"Lock attempt {attempt}/{attempts} failed for user {user.pk} "
                f"in period {period.pk}: {e}"
            )
            if attempt < attempts:
                time.sleep(delay)

    raise ConcurrencyConflict(period.pk, user.pk, attempts)


def set_target(period, user, target_amount):
    """
    Create or update the participant's own target for a period.

    Carry-over and logged entries are kept; completion is re-derived against
    the new effective target.
    """
    target_amount = parse_amount(target_amount)

    def apply():
        _ensure_open(period)
        progress, created = GroupGoalProgress.objects.select_for_update().get_or_create(
            period_id=period.pk,
            user=user,
            defaults={"target_amount": target_amount},
        )
        progress.target_amount = target_amount
        progress.is_completed = penalties.is_completed(
            progress.current_amount, penalties.effective_target(progress)
        )
        progress.save(update_fields=["target_amount", "is_completed", "updated_at"])
        logger.info(
            f"{'Set' if created else 'Updated'} target {target_amount} for user {user.pk} "
            f"in period {period.pk}"
        )
        return progress

    return _with_row_lock(period, user, apply)


def record_daily_progress(period, user, on_date, amount, today):
    """
    Add `amount` to the participant's entry for `on_date`.

    Args:
        period: GroupGoalPeriod the participant is logging against
        user: the (already authorized) participant
        on_date: calendar date the amount belongs to
        amount: positive number
        today: caller's reference date; entries after it are rejected

    Returns:
        GroupGoalProgress: the updated row

    Raises:
        InvalidAmountError, FutureDateError, TargetNotSetError, PeriodClosedError,
        ConcurrencyConflict
    """
    amount = parse_amount(amount)
    ensure_not_future(on_date, today)

    def apply():
        try:
            progress = GroupGoalProgress.objects.select_for_update().get(period_id=period.pk, user=user)
        except GroupGoalProgress.DoesNotExist:
            _ensure_open(period)
            logger.warning(f"User {user.pk} has no target in period {period.pk}")
            raise TargetNotSetError(period.pk, user.pk)
        # checked under the row lock so a concurrent close is seen
        _ensure_open(period)

        entries = progress.entries.add(on_date, amount)
        progress.current_amount = ensure_total_fits(entries.total(), amount)
        progress.daily_entries = entries.to_json()
        progress.is_completed = penalties.is_completed(
            progress.current_amount, penalties.effective_target(progress)
        )
        progress.save(update_fields=["daily_entries", "current_amount", "is_completed", "updated_at"])

        logger.info(
            f"Logged {amount} on {on_date} for user {user.pk} in period {period.pk}: "
            f"total {progress.current_amount}/{progress.effective_target}"
        )
        return progress

    return _with_row_lock(period, user, apply)
