# group_goals/admin.py
from django.contrib import admin, messages
from django.utils import timezone
from django.utils.html import format_html, format_html_join

from .daily_entries import DailyEntries
from .lifecycle import delete_group_goal
from .models import GroupGoal, GroupGoalPeriod, GroupGoalProgress
from .periods import preview_period_transition


###############
# Period inline on the goal page
class GroupGoalPeriodInline(admin.TabularInline):
    model = GroupGoalPeriod
    extra = 0
    can_delete = False
    fields = ('start_date', 'end_date', 'is_active', 'closed_at')
    readonly_fields = fields
    show_change_link = True


@admin.register(GroupGoal)
class GroupGoalAdmin(admin.ModelAdmin):
    list_display = ('name', 'group', 'unit', 'period_type', 'is_active', 'created_at')
    list_filter = ('period_type', 'is_active')
    search_fields = ('name', 'group__name')
    raw_id_fields = ('group', 'created_by')
    inlines = [GroupGoalPeriodInline]

    # periods and progress are PROTECTed; remove them explicitly with the goal
    def get_deleted_objects(self, objs, request):
        deleted, model_count, perms_needed, protected = super().get_deleted_objects(objs, request)
        goals = list(objs)
        model_count[GroupGoalPeriod._meta.verbose_name_plural] = (
            GroupGoalPeriod.objects.filter(group_goal__in=goals).count()
        )
        model_count[GroupGoalProgress._meta.verbose_name_plural] = (
            GroupGoalProgress.objects.filter(period__group_goal__in=goals).count()
        )
        return deleted, model_count, perms_needed, []

    def delete_model(self, request, obj):
        delete_group_goal(obj)

    def delete_queryset(self, request, queryset):
        for goal in queryset:
            delete_group_goal(goal)


###############
# Progress inline on the period page
class GroupGoalProgressInline(admin.TabularInline):
    model = GroupGoalProgress
    extra = 0
    can_delete = False
    fields = ('user', 'target_amount', 'penalty_carry_over', 'current_amount', 'is_completed', 'daily_entries_display')
    readonly_fields = fields

    def daily_entries_display(self, obj):
        return render_daily_entries(obj.daily_entries)
    daily_entries_display.short_description = "Daily entries"


def render_daily_entries(value):
    """Format daily entries into a readable HTML list, newest first"""
    try:
        entries = DailyEntries.from_json(value)
    except ValueError:
        return value
    if not entries:
        return "-"
    items = sorted(entries.items(), key=lambda x: x[0], reverse=True)
    return format_html(
        "<ul style='margin:0 0 0 1em;'>{}</ul>",
        format_html_join("", "<li>{}: {}</li>", ((day.isoformat(), amount) for day, amount in items)),
    )


@admin.register(GroupGoalPeriod)
class GroupGoalPeriodAdmin(admin.ModelAdmin):
    list_display = ('group_goal', 'start_date', 'end_date', 'is_active', 'closed_at')
    list_filter = ('is_active',)
    search_fields = ('group_goal__name',)
    readonly_fields = ('is_active', 'closed_at')
    inlines = [GroupGoalProgressInline]
    actions = ['preview_transition']

    @admin.action(description="Preview period close (dry run)")
    def preview_transition(self, request, queryset):
        today = timezone.localdate()
        for period in queryset.select_related('group_goal'):
            outcome = preview_period_transition(period, today)
            penalties = ", ".join(f"{p.user_name}: {p.amount}" for p in outcome.penalties) or "none"
            if outcome.opens_successor:
                next_range = f"{outcome.next_start_date} - {outcome.next_end_date}"
            else:
                next_range = "no next period (goal inactive)"
            self.message_user(
                request,
                f"{outcome.goal_name} {outcome.start_date} - {outcome.end_date}: "
                f"penalties {penalties}; next {next_range}; "
                f"{outcome.summary.completed_participants}/{outcome.summary.total_participants} completed",
                messages.INFO,
            )


@admin.register(GroupGoalProgress)
class GroupGoalProgressAdmin(admin.ModelAdmin):
    list_display = ('user', 'period', 'target_amount', 'penalty_carry_over', 'current_amount', 'is_completed')
    list_filter = ('is_completed',)
    search_fields = ('user__email', 'period__group_goal__name')
    # amounts change through the ledger only
    readonly_fields = ('target_amount', 'penalty_carry_over', 'current_amount', 'is_completed', 'daily_entries_display')
    exclude = ('daily_entries',)

    def daily_entries_display(self, obj):
        return render_daily_entries(obj.daily_entries)
    daily_entries_display.short_description = "Daily entries"
