# group_goals/models.py
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import Group
from .daily_entries import DailyEntries, progress_streak, validate_daily_entries
from . import penalties


class GroupGoal(models.Model):
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    PERIOD_CHOICES = [
        (WEEKLY, 'Weekly'),
        (MONTHLY, 'Monthly'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # deleting a goal goes through group_goals.lifecycle.delete_group_goal
    group = models.ForeignKey(Group, on_delete=models.PROTECT, related_name="goals")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    unit = models.CharField(max_length=50, help_text="Free-text unit label, e.g. miles")
    period_type = models.CharField(max_length=10, choices=PERIOD_CHOICES)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_group_goals",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["is_active"], name="groupgoal_active_idx")]

    def __str__(self):
        return f"{self.name} ({self.get_period_type_display()})"

    @property
    def current_period(self):
        return self.periods.filter(is_active=True).first()


class GroupGoalPeriod(models.Model):
    """
    One cadence window of a GroupGoal.

    open:     is_active=True
    closed:   closed_at set by the scheduler (terminal)
    upcoming: neither, pre-created successor waiting to be adopted
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group_goal = models.ForeignKey(GroupGoal, on_delete=models.PROTECT, related_name="periods")
    start_date = models.DateField()
    end_date = models.DateField()
    is_active = models.BooleanField(default=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["group_goal"],
                condition=Q(is_active=True),
                name="one_active_period_per_goal",
            ),
            models.UniqueConstraint(
                fields=["group_goal", "start_date"],
                name="one_period_per_goal_start",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "end_date"], name="period_active_end_idx"),
        ]

    def __str__(self):
        return f"{self.group_goal.name}: {self.start_date} – {self.end_date}"

    @property
    def is_closed(self):
        return self.closed_at is not None

    def has_ended(self, today):
        return self.end_date < today

    def is_current(self, today):
        return self.start_date <= today <= self.end_date

    def days_remaining(self, today):
        if self.has_ended(today):
            return 0
        return (self.end_date - today).days


class GroupGoalProgress(models.Model):
    """
    One participant's target, carry-over and daily log within a period.

    current_amount and is_completed are written only by group_goals.ledger
    (and is_completed by the scheduler when it adds carry-over).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    period = models.ForeignKey(GroupGoalPeriod, on_delete=models.PROTECT, related_name="progress")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="group_goal_progress")
    target_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    current_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    penalty_carry_over = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    daily_entries = models.JSONField(default=dict, blank=True, validators=[validate_daily_entries])
    is_completed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "group goal progress"
        unique_together = ("period", "user")
        indexes = [models.Index(fields=["is_completed"], name="progress_completed_idx")]

    def __str__(self):
        return f"{self.user} – {self.period}"

    @property
    def entries(self):
        return DailyEntries.from_json(self.daily_entries)

    @property
    def effective_target(self):
        return penalties.effective_target(self)

    @property
    def completion_percentage(self):
        return penalties.completion_percentage(self)

    @property
    def remaining_amount(self):
        return penalties.remaining_amount(self)

    def daily_progress(self, day):
        return self.entries.amount_on(day)

    def progress_streak(self, today):
        return progress_streak(self.entries, today)
