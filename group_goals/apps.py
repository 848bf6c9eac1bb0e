from django.apps import AppConfig


class GroupGoalsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'group_goals'
    verbose_name = "Group Goals"
