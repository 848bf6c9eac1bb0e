# group_goals/penalties.py
"""
Penalty engine.

Pure functions over a progress row and its period. Nothing here writes to
the database, so every function is safe to call for previews and dry runs.
"""
from decimal import Decimal

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def _dec(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def effective_target(progress):
    return _dec(progress.target_amount) + _dec(progress.penalty_carry_over)


def is_completed(current_amount, target):
    return _dec(current_amount) >= _dec(target)


def remaining_amount(progress):
    return max(ZERO, effective_target(progress) - _dec(progress.current_amount))


def completion_percentage(progress):
    target = effective_target(progress)
    if target == 0:
        return ZERO
    return min(HUNDRED, _dec(progress.current_amount) / target * HUNDRED)


def has_failed(progress, period, today):
    """A participant fails only once the period is over and they are short of the effective target."""
    return period.end_date < today and _dec(progress.current_amount) < effective_target(progress)


def compute_penalty(progress, period, today):
    """
    Amount carried into the next period.

    Args:
        progress: GroupGoalProgress (or anything with the same amount fields)
        period: the period the progress belongs to
        today: as-of date of the evaluation

    Returns:
        Decimal: the exact shortfall for a failed participant, otherwise 0
    """
    if not has_failed(progress, period, today):
        return ZERO
    return remaining_amount(progress)
