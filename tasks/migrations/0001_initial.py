import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Task",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("due_date", models.DateField()),
                ("due_time", models.CharField(blank=True, default="", max_length=5)),
                ("priority", models.CharField(
                    choices=[("High", "High"), ("Medium", "Medium"), ("Low", "Low")],
                    default="Medium",
                    max_length=10,
                )),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("completed", models.BooleanField(default=False)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="tasks",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["due_date", "due_time", "pk"],
            },
        ),
        migrations.AddIndex(
            model_name="task",
            index=models.Index(fields=["user", "due_date"], name="tasks_task_user_id_due_idx"),
        ),
        migrations.AddConstraint(
            model_name="task",
            constraint=models.CheckConstraint(
                condition=(
                    models.Q(completed=True, completed_at__isnull=False)
                    | models.Q(completed=False, completed_at__isnull=True)
                ),
                name="task_completed_at_matches_completed",
            ),
        ),
    ]
