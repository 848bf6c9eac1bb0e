# core/management/commands/process_group_goal_periods.py
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from datetime import datetime
from group_goals.periods import process_ended_periods
import logging

logger = logging.getLogger(__name__)

class Command(BaseCommand):
    help = 'Close ended group goal periods, open the next ones and carry penalties over (runs daily)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be processed without making changes',
        )
        parser.add_argument(
            '--as-of',
            type=str,
            help='Process as if today were this date (YYYY-MM-DD). Defaults to today.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        if options['as_of']:
            try:
                today = datetime.strptime(options['as_of'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError(f"Invalid --as-of date: {options['as_of']} (expected YYYY-MM-DD)")
            closed_at = None
        else:
            closed_at = timezone.now()
            today = timezone.localdate(closed_at)

        if dry_run:
            self.stdout.write(self.style.WARNING("🔍 DRY RUN MODE - No changes will be made\n"))

        self.stdout.write(f"🚀 Processing group goal periods as of {today.strftime('%Y-%m-%d')}...\n")

        report = process_ended_periods(today, dry_run=dry_run, closed_at=closed_at)

        if not report.outcomes and not report.failures:
            self.stdout.write(self.style.SUCCESS("✅ No periods to process"))
            return

        for outcome in report.outcomes:
            self.write_outcome(outcome, dry_run)

        for failure in report.failures:
            self.stdout.write(self.style.ERROR(f"✗ {failure.goal_name}: {failure.reason} (period {failure.period_id} left open)"))

        # Summary
        self.stdout.write("\n" + "="*60)
        self.stdout.write("Processing Summary:")
        verb = "Would close" if dry_run else "Closed"
        self.stdout.write(self.style.SUCCESS(f"  ✓ {verb}: {report.processed_count}"))
        if report.skipped:
            self.stdout.write(f"  ℹ  Already closed by another run: {report.skipped}")
        if report.failed_count:
            self.stdout.write(self.style.ERROR(f"  ✗ Failed (will retry next run): {report.failed_count}"))
        self.stdout.write("="*60)

        if report.failed_count:
            logger.error(f"{report.failed_count} period(s) failed to process as of {today}")

    def write_outcome(self, outcome, dry_run):
        """Per-period block: closed range, penalties, next range, completion stats"""
        self.stdout.write(f"🎯 Processing period for goal: {outcome.goal_name}")
        self.stdout.write(
            f"   ⏹️  {'Would close' if dry_run else 'Closed'} period: "
            f"{outcome.start_date:%b %d} - {outcome.end_date:%b %d, %Y}"
        )

        for carry in outcome.penalties:
            self.stdout.write(self.style.WARNING(
                f"   ⚠️  {carry.user_name} missed target by {carry.amount} {outcome.unit} - penalty carries over"
            ))

        if outcome.opens_successor:
            self.stdout.write(
                f"   ▶️  {'Would create' if dry_run else 'Created'} next period: "
                f"{outcome.next_start_date:%b %d} - {outcome.next_end_date:%b %d, %Y}"
            )
        else:
            self.stdout.write("   ⏸️  Goal is inactive - no next period")

        summary = outcome.summary
        self.stdout.write(
            f"   📊 Period stats: {summary.completed_participants}/{summary.total_participants} "
            f"completed ({summary.completion_rate}%)"
        )
        if outcome.penalties:
            self.stdout.write(f"   💸 Total penalty carry-over: {outcome.total_penalty} {outcome.unit}")
        self.stdout.write("")
