import datetime

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from tasks.services import list_tasks_by_due_date_range, upcoming_reminder


class Command(BaseCommand):
    help = "Print each user's reminder for incomplete tasks due today or tomorrow."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            type=datetime.date.fromisoformat,
            default=None,
            help="Reference date (YYYY-MM-DD). Defaults to today.",
        )

    def handle(self, *args, **options):
        today = options["date"] or timezone.localdate()
        tomorrow = today + datetime.timedelta(days=1)

        reminded = 0
        for user in get_user_model().objects.filter(is_active=True).order_by("pk"):
            tasks = list_tasks_by_due_date_range(
                user, today.isoformat(), tomorrow.isoformat(),
            )
            message = upcoming_reminder(tasks, today)
            if message is None:
                continue
            reminded += 1
            self.stdout.write(f"  {user.email or user.get_username()}: {message}")

        self.stdout.write(self.style.SUCCESS(f"Done. {reminded} user(s) reminded for {today}."))
