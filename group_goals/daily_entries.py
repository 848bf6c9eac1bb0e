# group_goals/daily_entries.py
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from decimal import Decimal
import logging

from django.core.exceptions import ValidationError

from core.exceptions import InvalidDailyEntriesError
from core.validators import to_decimal

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def _parse_day(key):
    if isinstance(key, datetime):
        return key.date()
    if isinstance(key, date):
        return key
    try:
        return datetime.strptime(key, DATE_FORMAT).date()
    except (ValueError, TypeError):
        raise InvalidDailyEntriesError(f"Invalid date key: {key!r}")


def _parse_value(day, value):
    # bool is an int subclass, and "7" in stored JSON means someone wrote around the ledger
    if isinstance(value, (bool, str)):
        raise InvalidDailyEntriesError(f"Invalid amount for {day}: {value!r}")
    amount = to_decimal(value)
    if amount is None or amount < 0:
        raise InvalidDailyEntriesError(f"Invalid amount for {day}: {value!r}")
    return amount


class DailyEntries(Mapping):
    """
    Calendar date -> amount logged that day, ordered by date.

    Immutable: `add` returns a new instance. Stored in the JSON column as
    {"YYYY-MM-DD": number}.
    """

    def __init__(self, entries=None):
        parsed = {}
        for key, value in (entries or {}).items():
            day = _parse_day(key)
            parsed[day] = parsed.get(day, Decimal("0.00")) + _parse_value(day, value)
        self._entries = dict(sorted(parsed.items()))

    @classmethod
    def from_json(cls, raw):
        if raw in (None, "", []):
            # rows created before any entry was logged may hold an empty list
            return cls()
        if not isinstance(raw, dict):
            raise InvalidDailyEntriesError(f"Daily entries must be an object, got {type(raw).__name__}")
        return cls(raw)

    def to_json(self):
        data = {}
        for day, amount in self._entries.items():
            data[day.strftime(DATE_FORMAT)] = int(amount) if amount == amount.to_integral_value() else float(amount)
        return data

    def __getitem__(self, day):
        return self._entries[_parse_day(day)]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return f"DailyEntries({self.to_json()!r})"

    def add(self, day, amount):
        """Accumulate `amount` into `day`. Same-day entries sum, never overwrite."""
        day = _parse_day(day)
        amount = _parse_value(day, amount)
        updated = dict(self._entries)
        updated[day] = updated.get(day, Decimal("0.00")) + amount
        return DailyEntries(updated)

    def amount_on(self, day):
        return self._entries.get(_parse_day(day), Decimal("0.00"))

    def total(self):
        return sum(self._entries.values(), Decimal("0.00"))


def progress_streak(entries, today):
    """
    Consecutive days with a positive entry, counting back from today.

    A streak that ended yesterday still counts (today may not be logged yet).
    """
    logged = {day for day, amount in entries.items() if amount > 0}
    cursor = today if today in logged else today - timedelta(days=1)
    streak = 0
    while cursor in logged:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def validate_daily_entries(value):
    """Model field validator used by forms and the admin."""
    try:
        DailyEntries.from_json(value)
    except InvalidDailyEntriesError as e:
        raise ValidationError(str(e))
