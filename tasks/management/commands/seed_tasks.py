import datetime

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from tasks.services import create_task

# (title, category, priority, days from today, due time, completed)
TASKS = [
    ("Prepare weekly status report", "Work", "High", -3, "10:00", True),
    ("30-minute run", "Health", "Medium", -2, "07:00", True),
    ("Call the dentist", "Personal", "Low", -1, "", False),
    ("Pay electricity bill", "Finance", "Medium", 0, "18:00", False),
    ("Clean the garage", "Home", "Low", 1, "", False),
    ("Finish online course module", "Education", "Medium", 2, "20:00", False),
    ("Plan next sprint", "Work", "High", 3, "09:30", False),
    ("Book annual check-up", "Health", "Medium", 5, "", False),
]


class Command(BaseCommand):
    help = "Seed a demo set of tasks around today's date for one user."

    def add_arguments(self, parser):
        parser.add_argument("--user", required=True, help="Email of the owning user.")

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(username=options["user"].strip().lower())
        except User.DoesNotExist:
            raise CommandError(f"No user with email {options['user']!r}.")

        today = timezone.localdate()
        for title, category, priority, offset, due_time, completed in TASKS:
            create_task(
                user,
                completed=completed,
                title=title,
                category=category,
                priority=priority,
                due_date=today + datetime.timedelta(days=offset),
                due_time=due_time,
            )
            self.stdout.write(f"  {title} – created")

        self.stdout.write(self.style.SUCCESS("Done."))
