from django.conf import settings
from django.db import models


class Task(models.Model):
    class Priority(models.TextChoices):
        HIGH = "High", "High"
        MEDIUM = "Medium", "Medium"
        LOW = "Low", "Low"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tasks",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    due_date = models.DateField()
    due_time = models.CharField(max_length=5, blank=True, default="")
    priority = models.CharField(
        max_length=10, choices=Priority.choices, default=Priority.MEDIUM
    )
    category = models.CharField(max_length=100, blank=True, default="")
    # Written only through tasks.services.set_completed.
    completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "due_time", "pk"]
        indexes = [
            models.Index(fields=["user", "due_date"], name="tasks_task_user_id_due_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(completed=True, completed_at__isnull=False)
                    | models.Q(completed=False, completed_at__isnull=True)
                ),
                name="task_completed_at_matches_completed",
            ),
        ]

    def __str__(self):
        return self.title
