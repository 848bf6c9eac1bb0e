# goals/admin.py
from django.contrib import admin
from .models import Goal, GoalProgress


class GoalProgressInline(admin.TabularInline):
    model = GoalProgress
    extra = 0
    can_delete = False
    fields = ('date', 'amount', 'note', 'created_at')
    readonly_fields = fields


@admin.register(Goal)
class GoalAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'progress_display', 'status', 'category', 'end_date')
    list_filter = ('status', 'category', 'is_public')
    search_fields = ('name', 'user__email')
    raw_id_fields = ('user',)
    # written by goals.progress.add_progress
    readonly_fields = ('current_amount', 'completed_on', 'created_at')
    inlines = [GoalProgressInline]

    def progress_display(self, obj):
        return f"{obj.current_amount}/{obj.target_amount} {obj.unit} ({obj.completion_percentage:.0f}%)"
    progress_display.short_description = "Progress"
