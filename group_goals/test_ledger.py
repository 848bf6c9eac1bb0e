# test_ledger.py
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch
import threading

import pytest
from django.db import OperationalError, connection, transaction
from django.utils import timezone

from core.exceptions import (
    ConcurrencyConflict,
    FutureDateError,
    InvalidAmountError,
    PeriodClosedError,
    TargetNotSetError,
)
from core.validators import MAX_AMOUNT
from group_goals.ledger import record_daily_progress, set_target
from group_goals.models import GroupGoalProgress

pytestmark = pytest.mark.django_db

DAY_0 = date(2024, 1, 1)
TODAY = DAY_0 + timedelta(days=3)


class TestSetTarget:
    """Test participants setting their own target"""

    def test_creates_row(self, period, make_user):
        user = make_user()
        progress = set_target(period, user, 50)
        assert progress.target_amount == Decimal("50.00")
        assert progress.current_amount == Decimal("0.00")
        assert progress.penalty_carry_over == Decimal("0.00")
        assert not progress.is_completed

    def test_update_keeps_entries(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        record_daily_progress(period, user, DAY_0, 6, TODAY)

        progress = set_target(period, user, 5)
        assert progress.current_amount == Decimal("6.00")
        assert progress.is_completed
        assert GroupGoalProgress.objects.filter(period=period, user=user).count() == 1

    def test_invalid_target(self, period, make_user):
        with pytest.raises(InvalidAmountError):
            set_target(period, make_user(), "lots")
        assert not GroupGoalProgress.objects.exists()

    def test_closed_period(self, period, make_user):
        period.is_active = False
        period.closed_at = timezone.now()
        period.save()
        with pytest.raises(PeriodClosedError):
            set_target(period, make_user(), 10)


class TestRecordDailyProgress:
    """Test the progress ledger"""

    def test_same_day_accumulates(self, period, make_user):
        user = make_user()
        set_target(period, user, 50)

        record_daily_progress(period, user, DAY_0, 3, TODAY)
        progress = record_daily_progress(period, user, DAY_0, 4, TODAY)

        assert progress.daily_entries == {DAY_0.isoformat(): 7}
        assert progress.current_amount == Decimal("7.00")

    def test_current_amount_is_sum_of_entries(self, period, make_user):
        user = make_user()
        set_target(period, user, 50)
        for offset, amount in [(0, 2), (1, "1.5"), (0, 4), (3, 10)]:
            record_daily_progress(period, user, DAY_0 + timedelta(days=offset), amount, TODAY)

        progress = GroupGoalProgress.objects.get(period=period, user=user)
        assert progress.current_amount == Decimal("17.50")
        assert progress.entries.total() == progress.current_amount
        assert progress.daily_progress(DAY_0) == Decimal("6.00")

    def test_completion_tracks_effective_target(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        GroupGoalProgress.objects.filter(period=period, user=user).update(penalty_carry_over=Decimal("2"))

        progress = record_daily_progress(period, user, DAY_0, 10, TODAY)
        assert not progress.is_completed

        progress = record_daily_progress(period, user, DAY_0 + timedelta(days=1), 2, TODAY)
        assert progress.is_completed

    def test_target_not_set(self, period, make_user):
        with pytest.raises(TargetNotSetError) as exc:
            record_daily_progress(period, make_user(), DAY_0, 5, TODAY)
        assert str(exc.value) == "Please set your target first."
        assert not GroupGoalProgress.objects.exists()

    def test_future_date(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        with pytest.raises(FutureDateError):
            record_daily_progress(period, user, TODAY + timedelta(days=1), 5, TODAY)
        assert GroupGoalProgress.objects.get(user=user).current_amount == Decimal("0.00")

    @pytest.mark.parametrize("amount", [0, -3, "abc", None])
    def test_invalid_amount(self, period, make_user, amount):
        user = make_user()
        set_target(period, user, 10)
        with pytest.raises(InvalidAmountError):
            record_daily_progress(period, user, DAY_0, amount, TODAY)
        assert GroupGoalProgress.objects.get(user=user).daily_entries == {}

    def test_closed_period(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        period.is_active = False
        period.closed_at = timezone.now()
        period.save()

        with pytest.raises(PeriodClosedError):
            record_daily_progress(period, user, DAY_0, 5, TODAY)

    @pytest.mark.django_db(transaction=True)
    def test_lock_contention_gives_up(self, period, make_user, settings):
        settings.LEDGER_LOCK_RETRIES = 2
        user = make_user()
        set_target(period, user, 10)

        with patch.object(
            GroupGoalProgress.objects, "select_for_update",
            side_effect=OperationalError("database is locked"),
        ) as mock_lock, patch("group_goals.ledger.time.sleep") as mock_sleep:
            with pytest.raises(ConcurrencyConflict) as exc:
                record_daily_progress(period, user, DAY_0, 5, TODAY)

        assert exc.value.attempts == 2
        assert mock_lock.call_count == 2
        mock_sleep.assert_called_once()
        assert GroupGoalProgress.objects.get(user=user).current_amount == Decimal("0.00")

    @pytest.mark.django_db(transaction=True)
    def test_lock_contention_recovers(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        real_lock = GroupGoalProgress.objects.select_for_update

        with patch.object(
            GroupGoalProgress.objects, "select_for_update",
            side_effect=[OperationalError("database is locked"), real_lock()],
        ), patch("group_goals.ledger.time.sleep"):
            progress = record_daily_progress(period, user, DAY_0, 5, TODAY)

        assert progress.current_amount == Decimal("5.00")

    def test_no_retry_inside_caller_transaction(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)

        with patch.object(
            GroupGoalProgress.objects, "select_for_update",
            side_effect=OperationalError("database is locked"),
        ) as mock_lock, patch("group_goals.ledger.time.sleep") as mock_sleep:
            with transaction.atomic():
                with pytest.raises(ConcurrencyConflict) as exc:
                    record_daily_progress(period, user, DAY_0, 5, TODAY)
                # the caller's transaction is still usable
                assert GroupGoalProgress.objects.get(user=user).current_amount == Decimal("0.00")

        assert exc.value.attempts == 1
        assert mock_lock.call_count == 1
        mock_sleep.assert_not_called()

    def test_total_cannot_exceed_column(self, period, make_user):
        user = make_user()
        set_target(period, user, 10)
        record_daily_progress(period, user, DAY_0, MAX_AMOUNT, TODAY)

        with pytest.raises(InvalidAmountError):
            record_daily_progress(period, user, DAY_0 + timedelta(days=1), MAX_AMOUNT, TODAY)
        with pytest.raises(InvalidAmountError):
            record_daily_progress(period, user, DAY_0, "0.01", TODAY)

        progress = GroupGoalProgress.objects.get(period=period, user=user)
        assert progress.current_amount == MAX_AMOUNT
        assert list(progress.entries) == [DAY_0]


class TestConcurrentWriters:
    """Test two writers racing on the same progress row"""

    @pytest.mark.django_db(transaction=True)
    def test_same_day_writes_both_land(self, period, make_user, settings):
        settings.LEDGER_LOCK_RETRIES = 50
        settings.LEDGER_RETRY_DELAY_SECONDS = 0.01
        user = make_user()
        set_target(period, user, 100)
        barrier = threading.Barrier(2)
        errors = []

        def writer(amount):
            try:
                barrier.wait(timeout=5)
                record_daily_progress(period, user, DAY_0, amount, TODAY)
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=writer, args=(amount,)) for amount in (3, 4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
        progress = GroupGoalProgress.objects.get(period=period, user=user)
        assert progress.daily_entries == {DAY_0.isoformat(): 7}
        assert progress.current_amount == Decimal("7.00")
