import uuid

import django.db.models.deletion
import group_goals.daily_entries
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GroupGoal',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('unit', models.CharField(help_text='Free-text unit label, e.g. miles', max_length=50)),
                ('period_type', models.CharField(choices=[('weekly', 'Weekly'), ('monthly', 'Monthly')], max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='created_group_goals', to=settings.AUTH_USER_MODEL)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='goals', to='core.group')),
            ],
            options={
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_active'], name='groupgoal_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='GroupGoalPeriod',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('is_active', models.BooleanField(default=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('group_goal', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='periods', to='group_goals.groupgoal')),
            ],
            options={
                'ordering': ['start_date'],
                'indexes': [models.Index(fields=['is_active', 'end_date'], name='period_active_end_idx')],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('group_goal',), name='one_active_period_per_goal'),
                    models.UniqueConstraint(fields=('group_goal', 'start_date'), name='one_period_per_goal_start'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GroupGoalProgress',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('target_amount', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('current_amount', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('penalty_carry_over', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('daily_entries', models.JSONField(blank=True, default=dict, validators=[group_goals.daily_entries.validate_daily_entries])),
                ('is_completed', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('period', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='progress', to='group_goals.groupgoalperiod')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='group_goal_progress', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'group goal progress',
                'indexes': [models.Index(fields=['is_completed'], name='progress_completed_idx')],
                'unique_together': {('period', 'user')},
            },
        ),
    ]
