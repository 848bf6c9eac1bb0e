# core/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DefaultUserAdmin
from django.urls import reverse
from django.utils.html import format_html, format_html_join
from core.models import CustomUser, Group

from .forms import CustomUserCreationForm, CustomUserChangeForm


###############
# Custom User Admin
class CustomUserAdmin(DefaultUserAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal info', {'fields': ('first_name', 'last_name')}),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Important dates', {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'password1', 'password2', 'is_staff', 'is_active'),
        }),
    )

    ordering = ('email',)
    list_display = ('email', 'first_name', 'last_name', 'is_active', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name')


###############
# Accountability groups
@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ('name', 'created_by', 'goal_count', 'created_at')
    search_fields = ('name',)
    readonly_fields = ('created_at', 'goals_display')
    raw_id_fields = ('created_by',)

    def goal_count(self, obj):
        return obj.goals.count()
    goal_count.short_description = "Goals"

    def goals_display(self, obj):
        """Links to the group's goals"""
        if not obj.pk:
            return "Save group first"
        goals = obj.goals.all()
        if not goals:
            return "-"
        return format_html(
            "<ul style='margin:0 0 0 1em;'>{}</ul>",
            format_html_join(
                "", "<li><a href='{}'>{}</a> ({})</li>",
                (
                    (reverse("admin:group_goals_groupgoal_change", args=[g.pk]), g.name, "active" if g.is_active else "inactive")
                    for g in goals
                ),
            ),
        )
    goals_display.short_description = "Goals"


###############
# Register the custom User admin
admin.site.register(CustomUser, CustomUserAdmin)
