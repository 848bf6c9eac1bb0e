# goals/models.py
import uuid

from django.conf import settings
from django.db import models


class Goal(models.Model):
    CATEGORY_CHOICES = [
        ('fitness', 'Fitness'),
        ('health', 'Health'),
        ('education', 'Education'),
        ('career', 'Career'),
        ('finance', 'Finance'),
        ('hobbies', 'Hobbies'),
        ('relationship', 'Relationship'),
        ('personal', 'Personal'),
        ('other', 'Other'),
    ]

    ACTIVE = 'active'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELED = 'canceled'
    STATUS_CHOICES = [
        (ACTIVE, 'Active'),
        (IN_PROGRESS, 'In progress'),
        (COMPLETED, 'Completed'),
        (CANCELED, 'Canceled'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="goals")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    target_amount = models.DecimalField(max_digits=10, decimal_places=2)
    # sum of progress entries, written by goals.progress only
    current_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    unit = models.CharField(max_length=50)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ACTIVE)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    punishment = models.TextField(blank=True)
    is_public = models.BooleanField(default=False)
    completed_on = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="goal_status_idx"),
            models.Index(fields=["category"], name="goal_category_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.current_amount}/{self.target_amount} {self.unit})"

    @property
    def is_completed(self):
        from goals.progress import is_goal_completed
        return is_goal_completed(self)

    @property
    def completion_percentage(self):
        from goals.progress import completion_percentage
        return completion_percentage(self)

    @property
    def remaining_amount(self):
        from goals.progress import remaining_amount
        return remaining_amount(self)


class GoalProgress(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    goal = models.ForeignKey(Goal, on_delete=models.CASCADE, related_name="progress")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    note = models.TextField(blank=True)
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "goal progress"
        ordering = ["-date", "-created_at"]
        indexes = [models.Index(fields=["goal", "date"], name="goalprogress_goal_date_idx")]

    def __str__(self):
        return f"{self.goal.name}: {self.amount} on {self.date}"
