import datetime
import json
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import CommandError, call_command
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from accounts.tokens import issue_token

from .forms import TaskForm
from .models import Task
from .serializers import task_to_dict
from .services import (
    create_task,
    list_tasks_by_due_date_range,
    set_completed,
    toggle_completed,
    update_task,
    upcoming_reminder,
)

UTC = datetime.timezone.utc
TODAY = datetime.date(2024, 3, 10)


def _user(email="owner@example.com"):
    return User.objects.create_user(username=email, email=email, password="pw")


def _make_task(user, title="Test task", due_date=TODAY, **kwargs):
    return Task.objects.create(user=user, title=title, due_date=due_date, **kwargs)


class CompletionConstraintTests(TestCase):
    """completed and completed_at must agree at the database level."""

    def setUp(self):
        self.user = _user()

    def test_completed_without_timestamp_raises(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            _make_task(self.user, completed=True)

    def test_timestamp_without_completed_raises(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            _make_task(self.user, completed_at=datetime.datetime(2024, 3, 1, tzinfo=UTC))

    def test_consistent_pairs_ok(self):
        _make_task(self.user)
        _make_task(self.user, completed=True, completed_at=datetime.datetime(2024, 3, 1, tzinfo=UTC))
        self.assertEqual(Task.objects.count(), 2)


class SetCompletedTests(TestCase):
    def setUp(self):
        self.user = _user()
        self.task = _make_task(self.user)
        self.now = datetime.datetime(2024, 3, 10, 9, 30, tzinfo=UTC)

    def test_complete_sets_timestamp(self):
        set_completed(self.task, True, now=self.now)
        self.task.refresh_from_db()
        self.assertTrue(self.task.completed)
        self.assertEqual(self.task.completed_at, self.now)

    def test_uncomplete_clears_timestamp(self):
        set_completed(self.task, True, now=self.now)
        set_completed(self.task, False)
        self.task.refresh_from_db()
        self.assertFalse(self.task.completed)
        self.assertIsNone(self.task.completed_at)

    def test_recomplete_keeps_original_timestamp(self):
        set_completed(self.task, True, now=self.now)
        set_completed(self.task, True, now=self.now + datetime.timedelta(days=1))
        self.task.refresh_from_db()
        self.assertEqual(self.task.completed_at, self.now)

    def test_toggle_round_trip(self):
        toggle_completed(self.task, now=self.now)
        self.assertTrue(self.task.completed)
        toggle_completed(self.task)
        self.task.refresh_from_db()
        self.assertFalse(self.task.completed)
        self.assertIsNone(self.task.completed_at)

    def test_create_completed_gets_timestamp(self):
        task = create_task(self.user, completed=True, title="Done already", due_date=TODAY)
        task.refresh_from_db()
        self.assertTrue(task.completed)
        self.assertIsNotNone(task.completed_at)

    def test_update_ignores_unknown_fields(self):
        update_task(self.task, title="Renamed", user=None, completed=True)
        self.task.refresh_from_db()
        self.assertEqual(self.task.title, "Renamed")
        self.assertEqual(self.task.user, self.user)
        self.assertTrue(self.task.completed)


class RangeQueryTests(TestCase):
    def setUp(self):
        self.user = _user()
        for day in (1, 5, 7, 8):
            _make_task(self.user, title=f"Day {day}", due_date=datetime.date(2024, 1, day))
        _make_task(_user("other@example.com"), title="Foreign", due_date=datetime.date(2024, 1, 5))

    def test_bounds_are_inclusive(self):
        tasks = list_tasks_by_due_date_range(self.user, "2024-01-01", "2024-01-07")
        self.assertEqual([t.title for t in tasks], ["Day 1", "Day 5", "Day 7"])

    def test_single_day(self):
        tasks = list_tasks_by_due_date_range(self.user, "2024-01-08", "2024-01-08")
        self.assertEqual([t.title for t in tasks], ["Day 8"])


class UpcomingReminderTests(SimpleTestCase):
    def _task(self, offset, completed=False):
        return Task(title="t", due_date=TODAY + datetime.timedelta(days=offset), completed=completed)

    def test_today_and_tomorrow(self):
        tasks = [self._task(0), self._task(0), self._task(1)]
        self.assertEqual(
            upcoming_reminder(tasks, TODAY),
            "You have 2 tasks due today and 1 due tomorrow!",
        )

    def test_today_only(self):
        self.assertEqual(upcoming_reminder([self._task(0)], TODAY), "You have 1 tasks due today!")

    def test_tomorrow_only(self):
        self.assertEqual(upcoming_reminder([self._task(1)], TODAY), "You have 1 tasks due tomorrow.")

    def test_completed_and_later_tasks_ignored(self):
        tasks = [self._task(0, completed=True), self._task(2), self._task(-1)]
        self.assertIsNone(upcoming_reminder(tasks, TODAY))


class TaskFormTests(TestCase):
    def _data(self, **overrides):
        data = {
            "title": "Write docs",
            "description": "",
            "due_date": "2024-03-10",
            "due_time": "",
            "priority": "",
            "category": "  Work ",
        }
        data.update(overrides)
        return data

    def test_defaults(self):
        form = TaskForm(self._data())
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["priority"], "Medium")
        self.assertEqual(form.cleaned_data["category"], "Work")

    def test_bad_due_time(self):
        form = TaskForm(self._data(due_time="25:00"))
        self.assertFalse(form.is_valid())
        self.assertIn("due_time", form.errors)

    def test_unknown_priority_rejected(self):
        form = TaskForm(self._data(priority="Urgent"))
        self.assertFalse(form.is_valid())
        self.assertIn("priority", form.errors)


class TaskSerializerTests(SimpleTestCase):
    def test_blank_optionals_are_null(self):
        task = Task(pk=3, title="t", due_date=TODAY, due_time="", category="")
        data = task_to_dict(task)
        self.assertEqual(data["id"], 3)
        self.assertEqual(data["dueDate"], "2024-03-10")
        self.assertIsNone(data["dueTime"])
        self.assertIsNone(data["category"])
        self.assertIsNone(data["completedAt"])


class TaskApiTests(TestCase):
    def setUp(self):
        self.user = _user()
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}
        self.collection = reverse("tasks:task_collection")

    def _send(self, method, url, payload):
        return getattr(self.client, method)(
            url, data=json.dumps(payload), content_type="application/json", **self.auth,
        )

    def test_requires_token(self):
        self.assertEqual(self.client.get(self.collection).status_code, 401)

    def test_create(self):
        response = self._send("post", self.collection, {
            "title": "Buy milk",
            "dueDate": "2024-03-11",
            "dueTime": "08:15",
            "priority": "High",
            "category": "Home",
        })
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["title"], "Buy milk")
        self.assertEqual(data["dueTime"], "08:15")
        self.assertFalse(data["completed"])
        self.assertEqual(Task.objects.get(pk=data["id"]).user, self.user)

    def test_create_completed(self):
        response = self._send("post", self.collection, {
            "title": "Already done", "dueDate": "2024-03-11", "completed": True,
        })
        data = response.json()
        self.assertTrue(data["completed"])
        self.assertIsNotNone(data["completedAt"])
        self.assertEqual(data["priority"], "Medium")

    def test_create_invalid(self):
        response = self._send("post", self.collection, {"title": "", "dueDate": "soon"})
        self.assertEqual(response.status_code, 400)
        errors = response.json()["errors"]
        self.assertIn("title", errors)
        self.assertIn("due_date", errors)

    def test_create_malformed_json(self):
        response = self.client.post(
            self.collection, data="{", content_type="application/json", **self.auth,
        )
        self.assertEqual(response.status_code, 400)

    def test_list_only_own_tasks(self):
        _make_task(self.user, title="Mine")
        _make_task(_user("other@example.com"), title="Theirs")
        response = self.client.get(self.collection, **self.auth)
        self.assertEqual([t["title"] for t in response.json()], ["Mine"])

    def test_list_by_range(self):
        _make_task(self.user, title="In", due_date=datetime.date(2024, 1, 3))
        _make_task(self.user, title="Out", due_date=datetime.date(2024, 2, 3))
        response = self.client.get(
            self.collection, {"startDate": "2024-01-01", "endDate": "2024-01-31"}, **self.auth,
        )
        self.assertEqual([t["title"] for t in response.json()], ["In"])

    def test_foreign_task_is_404(self):
        task = _make_task(_user("other@example.com"))
        url = reverse("tasks:task_detail", args=[task.pk])
        self.assertEqual(self.client.get(url, **self.auth).status_code, 404)
        self.assertEqual(self.client.delete(url, **self.auth).status_code, 404)
        self.assertTrue(Task.objects.filter(pk=task.pk).exists())

    def test_put_replaces_fields(self):
        task = _make_task(self.user, category="Home", due_time="10:00")
        response = self._send("put", reverse("tasks:task_detail", args=[task.pk]), {
            "title": "Replaced", "dueDate": "2024-04-01",
        })
        self.assertEqual(response.status_code, 200)
        task.refresh_from_db()
        self.assertEqual(task.title, "Replaced")
        self.assertEqual(task.due_date, datetime.date(2024, 4, 1))
        self.assertEqual(task.category, "")
        self.assertEqual(task.due_time, "")

    def test_patch_keeps_unsent_fields(self):
        task = _make_task(self.user, category="Home", priority="Low", due_time="10:00")
        response = self._send("patch", reverse("tasks:task_detail", args=[task.pk]), {"title": "Renamed"})
        self.assertEqual(response.status_code, 200)
        task.refresh_from_db()
        self.assertEqual(task.title, "Renamed")
        self.assertEqual(task.category, "Home")
        self.assertEqual(task.priority, "Low")
        self.assertEqual(task.due_time, "10:00")
        self.assertEqual(task.due_date, TODAY)

    def test_patch_completed(self):
        task = _make_task(self.user)
        self._send("patch", reverse("tasks:task_detail", args=[task.pk]), {"completed": True})
        task.refresh_from_db()
        self.assertTrue(task.completed)
        self.assertIsNotNone(task.completed_at)

    def test_create_rejects_string_completed(self):
        response = self._send("post", self.collection, {
            "title": "Sneaky", "dueDate": "2024-03-11", "completed": "false",
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Task.objects.filter(title="Sneaky").exists())

    def test_patch_rejects_string_completed(self):
        task = _make_task(self.user)
        response = self._send(
            "patch", reverse("tasks:task_detail", args=[task.pk]), {"completed": "false"},
        )
        self.assertEqual(response.status_code, 400)
        task.refresh_from_db()
        self.assertFalse(task.completed)
        self.assertIsNone(task.completed_at)

    def test_patch_false_uncompletes(self):
        task = _make_task(self.user)
        set_completed(task, True)
        self._send("patch", reverse("tasks:task_detail", args=[task.pk]), {"completed": False})
        task.refresh_from_db()
        self.assertFalse(task.completed)
        self.assertIsNone(task.completed_at)

    def test_delete(self):
        task = _make_task(self.user)
        response = self.client.delete(reverse("tasks:task_detail", args=[task.pk]), **self.auth)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Task.objects.filter(pk=task.pk).exists())

    def test_toggle_complete(self):
        task = _make_task(self.user)
        url = reverse("tasks:toggle_complete", args=[task.pk])
        data = self.client.post(url, **self.auth).json()
        self.assertTrue(data["completed"])
        self.assertIsNotNone(data["completedAt"])
        data = self.client.post(url, **self.auth).json()
        self.assertFalse(data["completed"])
        self.assertIsNone(data["completedAt"])

    def test_toggle_requires_post(self):
        task = _make_task(self.user)
        response = self.client.get(reverse("tasks:toggle_complete", args=[task.pk]), **self.auth)
        self.assertEqual(response.status_code, 405)


class ManagementCommandTests(TestCase):
    def setUp(self):
        self.user = _user()

    def test_seed_tasks(self):
        out = StringIO()
        call_command("seed_tasks", user="Owner@Example.com", stdout=out)
        tasks = Task.objects.filter(user=self.user)
        self.assertEqual(tasks.count(), 8)
        for task in tasks.filter(completed=True):
            self.assertIsNotNone(task.completed_at)
        self.assertIn("Done.", out.getvalue())

    def test_seed_unknown_user(self):
        with self.assertRaises(CommandError):
            call_command("seed_tasks", user="nobody@example.com", stdout=StringIO())

    def test_remind_upcoming(self):
        _make_task(self.user, due_date=TODAY)
        _make_task(self.user, due_date=TODAY + datetime.timedelta(days=1))
        _make_task(_user("idle@example.com"), due_date=TODAY + datetime.timedelta(days=4))
        out = StringIO()
        call_command("remind_upcoming", "--date=2024-03-10", stdout=out)
        output = out.getvalue()
        self.assertIn("owner@example.com: You have 1 tasks due today and 1 due tomorrow!", output)
        self.assertNotIn("idle@example.com", output)
        self.assertIn("Done. 1 user(s) reminded for 2024-03-10.", output)
