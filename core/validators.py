# core/validators.py
from decimal import Decimal, InvalidOperation
import logging

from core.exceptions import InvalidAmountError, FutureDateError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# DecimalField(max_digits=10, decimal_places=2)
MAX_AMOUNT = Decimal("99999999.99")


def to_decimal(value):
    """
    Convert a submitted number to a Decimal with two decimal places.

    Returns:
        Decimal or None if the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    try:
        return number.quantize(CENT)
    except InvalidOperation:
        return None


def parse_amount(value):
    """Validate a progress amount. Raises InvalidAmountError before anything is written."""
    amount = to_decimal(value)
    if amount is None:
        logger.warning(f"Rejected malformed amount: {value!r}")
        raise InvalidAmountError(value, "not a number")
    if amount <= 0:
        logger.warning(f"Rejected non-positive amount: {value!r}")
        raise InvalidAmountError(value, "must be greater than zero")
    if amount > MAX_AMOUNT:
        raise InvalidAmountError(value, f"must not exceed {MAX_AMOUNT}")
    return amount


def ensure_total_fits(total, value):
    """
    Running totals (sums of entries, accumulated carry-over) are stored in
    the same column as single amounts, so they share MAX_AMOUNT.

    Args:
        total: the value about to be written
        value: the submitted amount that produced it, for the error message
    """
    if total > MAX_AMOUNT:
        logger.warning(f"Rejected amount {value!r}: total {total} would exceed {MAX_AMOUNT}")
        raise InvalidAmountError(value, f"total {total} would exceed {MAX_AMOUNT}")
    return total


def ensure_not_future(on_date, today):
    if on_date > today:
        logger.warning(f"Rejected future-dated entry {on_date} (today {today})")
        raise FutureDateError(on_date, today)
    return on_date
