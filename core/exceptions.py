# core/exceptions.py


class ChainforgeError(Exception):
    """Base class for errors raised by the goal tracking services."""


class ProgressRejected(ChainforgeError):
    """A write was refused before touching any row. The caller can correct it and retry."""


class TargetNotSetError(ProgressRejected):
    def __init__(self, period_id=None, user_id=None):
        self.period_id = period_id
        self.user_id = user_id
        super().__init__("Please set your target first.")


class InvalidAmountError(ProgressRejected):
    def __init__(self, value, reason="amount must be a positive number"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid amount {value!r}: {reason}")


class FutureDateError(ProgressRejected):
    def __init__(self, on_date, today):
        self.on_date = on_date
        self.today = today
        super().__init__(f"Cannot log progress for {on_date} (today is {today})")


class PeriodClosedError(ProgressRejected):
    def __init__(self, period_id):
        self.period_id = period_id
        super().__init__(f"Period {period_id} has been closed")


class InvalidDailyEntriesError(ChainforgeError, ValueError):
    """Daily entries must map ISO calendar dates to non-negative numbers."""


class ConcurrencyConflict(ChainforgeError):
    def __init__(self, period_id, user_id, attempts):
        self.period_id = period_id
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(
            f"Could not lock progress row for user {user_id} in period {period_id} "
            f"after {attempts} attempt(s)"
        )


class PeriodTransitionFailure(ChainforgeError):
    """Closing one period failed. The period stays active and is retried on the next run."""

    def __init__(self, period_id, goal_name, reason):
        self.period_id = period_id
        self.goal_name = goal_name
        self.reason = reason
        super().__init__(f"Failed to process period {period_id} ({goal_name}): {reason}")
