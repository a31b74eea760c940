import datetime
import os
from types import SimpleNamespace
from unittest import mock

import reportlab
from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from reportlab.pdfbase import pdfmetrics

from accounts.tokens import issue_token
from tasks.models import Task

from .aggregation import aggregate, load_aggregation
from .charts import render_chart, render_charts
from .exceptions import DataFetchError, ExportDataUnavailableError, InvalidRangeError
from .export import DocumentExporter, export_document, export_report, report_filename
from .pdf import PdfWriter, register_font
from .presentation import EMPTY_MESSAGE, build_view
from .ranges import DateRange, period_label, resolve_range

UTC = datetime.timezone.utc
JAN_1 = datetime.date(2024, 1, 1)
JAN_7 = datetime.date(2024, 1, 7)
# Bitstream Vera ships inside the reportlab distribution.
VERA_TTF = os.path.join(os.path.dirname(reportlab.__file__), "fonts", "Vera.ttf")


def _task(title="Task", due_date=JAN_1, completed=False, completed_at=None,
          priority="Medium", category="", due_time=""):
    """Stand-in task record carrying the attributes the report code reads."""
    return SimpleNamespace(
        pk=None, title=title, description="", due_date=due_date,
        due_time=due_time, priority=priority, category=category,
        completed=completed, completed_at=completed_at, created_at=None,
    )


def _done(day, hour=12, **kwargs):
    return _task(
        due_date=day, completed=True,
        completed_at=datetime.datetime.combine(day, datetime.time(hour), tzinfo=UTC),
        **kwargs,
    )


class RecordingWriter:
    """Document writer that records operations; every text block is 4 mm tall."""

    LINE_HEIGHT = 4

    def __init__(self):
        self.ops = []
        self.saved_as = None

    def write_text(self, content, x, y, max_width, size=10):
        self.ops.append(("text", content, y))

    def write_image(self, image, x, y, width, height):
        self.ops.append(("image", image, y))

    def add_page(self):
        self.ops.append(("page",))

    def measure_text(self, content, max_width, size=10):
        return self.LINE_HEIGHT

    def save(self, filename):
        self.saved_as = filename
        return b"recorded"

    def texts(self):
        return [op[1] for op in self.ops if op[0] == "text"]


class ResolveRangeTests(SimpleTestCase):
    today = datetime.date(2024, 2, 15)

    def test_weekly_covers_seven_days_back_through_today(self):
        rng = resolve_range("weekly", today=self.today)
        self.assertEqual(rng, DateRange(datetime.date(2024, 2, 8), self.today))

    def test_monthly_in_leap_february(self):
        rng = resolve_range("monthly", today=self.today)
        self.assertEqual(rng.start, datetime.date(2024, 2, 1))
        self.assertEqual(rng.end, datetime.date(2024, 2, 29))

    def test_monthly_in_december(self):
        rng = resolve_range("monthly", today=datetime.date(2023, 12, 31))
        self.assertEqual(rng, DateRange(datetime.date(2023, 12, 1), datetime.date(2023, 12, 31)))

    def test_custom_parses_strings(self):
        rng = resolve_range("custom", today=self.today, start="2024-01-01", end="2024-01-07")
        self.assertEqual(rng, DateRange(JAN_1, JAN_7))

    def test_custom_start_after_end_rejected(self):
        with self.assertRaises(InvalidRangeError):
            resolve_range("custom", start="2024-01-07", end="2024-01-01")

    def test_custom_missing_bound_rejected(self):
        with self.assertRaises(InvalidRangeError):
            resolve_range("custom", start="2024-01-07", end="")

    def test_custom_malformed_date_rejected(self):
        with self.assertRaises(InvalidRangeError):
            resolve_range("custom", start="01/07/2024", end="2024-01-09")

    def test_unknown_mode_falls_back_to_weekly(self):
        self.assertEqual(
            resolve_range("quarterly", today=self.today),
            resolve_range("weekly", today=self.today),
        )

    def test_single_day_range_allowed(self):
        rng = DateRange(JAN_1, JAN_1)
        self.assertEqual(rng.days(), [JAN_1])

    def test_days_are_inclusive(self):
        days = DateRange(JAN_1, JAN_7).days()
        self.assertEqual(len(days), 7)
        self.assertEqual(days[0], JAN_1)
        self.assertEqual(days[-1], JAN_7)

    def test_ends_cover_whole_days(self):
        rng = DateRange(JAN_1, JAN_7)
        self.assertTrue(rng.contains(JAN_1))
        self.assertTrue(rng.contains(JAN_7))
        self.assertFalse(rng.contains(datetime.date(2023, 12, 31)))
        self.assertFalse(rng.contains(datetime.date(2024, 1, 8)))
        self.assertEqual(rng.iso_bounds(), ("2024-01-01", "2024-01-07"))

    def test_period_label(self):
        self.assertEqual(period_label(DateRange(JAN_1, JAN_7)), "Jan 1, 2024 – Jan 7, 2024")


class AggregateTests(SimpleTestCase):
    rng = DateRange(JAN_1, JAN_7)

    def test_due_window_filter_and_trend(self):
        tasks = [
            _done(datetime.date(2024, 1, 3), priority="High", category="Work"),
            _task(due_date=datetime.date(2024, 1, 10)),
        ]
        result = aggregate(tasks, self.rng)
        self.assertEqual(result.total_tasks, 1)
        self.assertEqual(result.completed_tasks, 1)
        self.assertEqual(result.pending_tasks, 0)
        self.assertEqual(result.completion_rate, 100.0)
        self.assertEqual(dict(result.category_breakdown), {"Work": 1})
        self.assertEqual(dict(result.priority_breakdown), {"High": 1, "Medium": 0, "Low": 0})
        self.assertEqual(dict(result.completion_trend), {"2024-01-03": 1})
        self.assertEqual(len(result.tasks_in_period), 1)

    def test_empty_task_set(self):
        result = aggregate([], self.rng)
        self.assertEqual(result.total_tasks, 0)
        self.assertEqual(result.completed_tasks, 0)
        self.assertEqual(result.pending_tasks, 0)
        self.assertEqual(result.completion_rate, 0)
        self.assertEqual(dict(result.category_breakdown), {})
        self.assertEqual(dict(result.priority_breakdown), {"High": 0, "Medium": 0, "Low": 0})
        self.assertEqual(dict(result.completion_trend), {})

    def test_range_ends_are_inclusive(self):
        tasks = [_task(due_date=JAN_1), _task(due_date=JAN_7), _task(due_date=datetime.date(2023, 12, 31))]
        self.assertEqual(aggregate(tasks, self.rng).total_tasks, 2)

    def test_iso_string_due_dates_accepted(self):
        tasks = [_task(due_date="2024-01-02"), _task(due_date="2024-02-02")]
        self.assertEqual(aggregate(tasks, self.rng).total_tasks, 1)

    def test_blank_category_is_uncategorized(self):
        tasks = [_task(category=""), _task(category=None), _task(category="Home")]
        result = aggregate(tasks, self.rng)
        self.assertEqual(dict(result.category_breakdown), {"Uncategorized": 2, "Home": 1})

    def test_category_lookup_is_case_sensitive(self):
        result = aggregate([_task(category="Work"), _task(category="work")], self.rng)
        self.assertEqual(dict(result.category_breakdown), {"Work": 1, "work": 1})

    def test_unknown_priority_dropped_from_breakdown(self):
        result = aggregate([_task(priority="Urgent"), _task(priority="Low")], self.rng)
        self.assertEqual(result.total_tasks, 2)
        self.assertEqual(dict(result.priority_breakdown), {"High": 0, "Medium": 0, "Low": 1})

    def test_completion_outside_range_not_in_trend(self):
        late = _task(
            due_date=datetime.date(2024, 1, 5), completed=True,
            completed_at=datetime.datetime(2024, 1, 9, 8, tzinfo=UTC),
        )
        result = aggregate([late], self.rng)
        self.assertEqual(result.completed_tasks, 1)
        self.assertEqual(dict(result.completion_trend), {})

    def test_trend_keyed_by_completion_date_not_due_date(self):
        early = _task(
            due_date=datetime.date(2024, 1, 6), completed=True,
            completed_at=datetime.datetime(2024, 1, 2, 9, tzinfo=UTC),
        )
        result = aggregate([early, _done(datetime.date(2024, 1, 2))], self.rng)
        self.assertEqual(dict(result.completion_trend), {"2024-01-02": 2})

    def test_trend_only_counts_tasks_in_period(self):
        outside = _task(
            due_date=datetime.date(2024, 2, 1), completed=True,
            completed_at=datetime.datetime(2024, 1, 3, 9, tzinfo=UTC),
        )
        self.assertEqual(dict(aggregate([outside], self.rng).completion_trend), {})

    def test_counts_sum_to_total(self):
        tasks = [
            _done(JAN_1, priority="High", category="Work"),
            _task(priority="Low", category="Home"),
            _task(priority="Medium"),
            _done(datetime.date(2024, 1, 4), priority="Medium", category="Work"),
        ]
        result = aggregate(tasks, self.rng)
        self.assertEqual(result.completed_tasks + result.pending_tasks, result.total_tasks)
        self.assertEqual(sum(result.category_breakdown.values()), result.total_tasks)
        self.assertEqual(sum(result.priority_breakdown.values()), result.total_tasks)
        self.assertEqual(result.completion_rate, 50.0)

    def test_idempotent(self):
        tasks = [_done(JAN_1, category="Work"), _task(category="Home")]
        self.assertEqual(aggregate(tasks, self.rng).as_dict(), aggregate(tasks, self.rng).as_dict())

    def test_trend_uses_local_date_of_completion(self):
        late_evening = _task(
            due_date=JAN_7, completed=True,
            completed_at=datetime.datetime(2024, 1, 8, 4, 30, tzinfo=UTC),
        )
        with override_settings(TIME_ZONE="America/New_York"):
            self.assertEqual(dict(aggregate([late_evening], self.rng).completion_trend), {"2024-01-07": 1})
        # In UTC the same instant falls on Jan 8, after the range.
        self.assertEqual(dict(aggregate([late_evening], self.rng).completion_trend), {})

    @override_settings(TIME_ZONE="America/New_York")
    def test_iso_string_completion_with_offset(self):
        task = _task(due_date=JAN_7, completed=True, completed_at="2024-01-08T04:30:00+00:00")
        self.assertEqual(dict(aggregate([task], self.rng).completion_trend), {"2024-01-07": 1})

    def test_iso_string_completion(self):
        task = _task(completed=True, completed_at="2024-01-03T10:00:00")
        self.assertEqual(dict(aggregate([task], self.rng).completion_trend), {"2024-01-03": 1})

    def test_naive_completion_taken_as_local(self):
        task = _task(completed=True, completed_at=datetime.datetime(2024, 1, 4, 23, 0))
        self.assertEqual(dict(aggregate([task], self.rng).completion_trend), {"2024-01-04": 1})

    def test_date_completion(self):
        task = _task(completed=True, completed_at=datetime.date(2024, 1, 5))
        self.assertEqual(dict(aggregate([task], self.rng).completion_trend), {"2024-01-05": 1})

    def test_unparsable_completion_skipped(self):
        task = _task(completed=True, completed_at="yesterday")
        result = aggregate([task], self.rng)
        self.assertEqual(dict(result.completion_trend), {})
        self.assertEqual(result.completed_tasks, 1)

    def test_result_breakdowns_are_read_only(self):
        result = aggregate([_task(category="Work")], self.rng)
        with self.assertRaises(TypeError):
            result.category_breakdown["Work"] = 5

    def test_as_dict_uses_api_field_names(self):
        payload = aggregate([_done(datetime.date(2024, 1, 3), title="Ship")], self.rng).as_dict()
        self.assertEqual(
            set(payload),
            {
                "totalTasks", "completedTasks", "pendingTasks", "completionRate",
                "categoryBreakdown", "completionTrend", "priorityBreakdown", "tasksInPeriod",
            },
        )
        self.assertEqual(payload["tasksInPeriod"][0]["title"], "Ship")
        self.assertEqual(payload["tasksInPeriod"][0]["dueDate"], "2024-01-03")


class LoadAggregationTests(SimpleTestCase):
    rng = DateRange(JAN_1, JAN_7)

    def test_passes_iso_bounds_to_store(self):
        calls = []

        def list_tasks(user, start, end):
            calls.append((user, start, end))
            return [_task(due_date=JAN_1), _task(due_date=datetime.date(2024, 3, 1))]

        result = load_aggregation("user", self.rng, list_tasks=list_tasks)
        self.assertEqual(calls, [("user", "2024-01-01", "2024-01-07")])
        self.assertEqual(result.total_tasks, 1)

    def test_database_error_becomes_data_fetch_error(self):
        def list_tasks(user, start, end):
            raise DatabaseError("connection refused")

        with self.assertRaises(DataFetchError):
            load_aggregation("user", self.rng, list_tasks=list_tasks)


class BuildViewTests(SimpleTestCase):
    rng = DateRange(JAN_1, JAN_7)

    def test_zero_tasks(self):
        view = build_view(aggregate([], self.rng), self.rng)
        self.assertEqual([c.value for c in view.cards], ["0", "0", "0", "0.0%"])
        self.assertEqual(view.entries, ())
        self.assertEqual(view.empty_message, EMPTY_MESSAGE)
        self.assertEqual(len(view.trend_series.labels), 7)
        self.assertEqual(view.trend_series.values, (0,) * 7)

    def test_cards_and_rate_format(self):
        tasks = [_done(JAN_1), _task(), _task()]
        view = build_view(aggregate(tasks, self.rng), self.rng)
        self.assertEqual(
            [(c.label, c.value) for c in view.cards],
            [
                ("Total Tasks", "3"),
                ("Completed Tasks", "1"),
                ("Pending Tasks", "2"),
                ("Completion Rate", "33.3%"),
            ],
        )
        self.assertIsNone(view.empty_message)

    def test_trend_series_spans_every_day(self):
        tasks = [_done(datetime.date(2024, 1, 3)), _done(datetime.date(2024, 1, 3))]
        view = build_view(aggregate(tasks, self.rng), self.rng)
        self.assertEqual(view.trend_series.kind, "bar")
        self.assertEqual(view.trend_series.labels[0], "2024-01-01")
        self.assertEqual(view.trend_series.labels[-1], "2024-01-07")
        self.assertEqual(view.trend_series.values, (0, 0, 2, 0, 0, 0, 0))
        self.assertEqual(view.trend_series.points[2]["bar_pct"], 100)

    def test_category_and_priority_series(self):
        tasks = [_task(category="Work", priority="High"), _task(category="Home", priority="High")]
        view = build_view(aggregate(tasks, self.rng), self.rng)
        self.assertEqual(view.category_series.kind, "pie")
        self.assertEqual(view.category_series.labels, ("Work", "Home"))
        self.assertEqual(view.category_series.values, (1, 1))
        self.assertEqual(view.priority_series.kind, "doughnut")
        self.assertEqual(view.priority_series.labels, ("High", "Medium", "Low"))
        self.assertEqual(view.priority_series.values, (2, 0, 0))

    def test_entries_sorted_by_due_date(self):
        tasks = [
            _task(title="Later", due_date=datetime.date(2024, 1, 5)),
            _task(title="Done", due_date=datetime.date(2024, 1, 2), completed=True,
                  completed_at=datetime.datetime(2024, 1, 2, tzinfo=UTC), due_time="09:30"),
            _task(title="Early", due_date=datetime.date(2024, 1, 2)),
        ]
        view = build_view(aggregate(tasks, self.rng), self.rng)
        self.assertEqual([e.title for e in view.entries], ["Early", "Done", "Later"])
        self.assertEqual(view.entries[1].due_display, "Jan 2, 2024 09:30")
        self.assertEqual(view.entries[1].status_label, "Completed")
        self.assertEqual(view.entries[0].due_display, "Jan 2, 2024")
        self.assertEqual(view.entries[0].status_label, "Pending")

    def test_period_label(self):
        view = build_view(aggregate([], self.rng), self.rng)
        self.assertEqual(view.period_label, "Jan 1, 2024 – Jan 7, 2024")


class DocumentExporterTests(SimpleTestCase):
    rng = DateRange(JAN_1, JAN_7)

    def _export(self, tasks, charts=None):
        writer = RecordingWriter()
        document = DocumentExporter(lambda: writer).export(aggregate(tasks, self.rng), self.rng, charts)
        return writer, document

    def test_zero_tasks_document(self):
        writer, document = self._export([])
        texts = writer.texts()
        self.assertEqual(texts[0], "Task Report")
        self.assertEqual(texts[1], "Period: Jan 1, 2024 – Jan 7, 2024")
        self.assertIn("Total Tasks: 0", texts)
        self.assertIn("Completed Tasks: 0", texts)
        self.assertIn("Pending Tasks: 0", texts)
        self.assertIn("Completion Rate: 0.0%", texts)
        self.assertEqual(texts.count(EMPTY_MESSAGE), 1)
        self.assertNotIn("Visual Summaries", texts)
        self.assertFalse([op for op in writer.ops if op[0] == "image"])
        self.assertEqual(writer.saved_as, "Task_Report_2024-01-01_to_2024-01-07.pdf")
        self.assertEqual(document.page_count, 1)
        self.assertEqual(document.content, b"recorded")

    def test_missing_charts_are_skipped(self):
        writer, _ = self._export(
            [_task(category="Work")],
            charts={"category": "cat-image", "trend": None, "priority": "pri-image"},
        )
        texts = writer.texts()
        self.assertIn("Visual Summaries", texts)
        self.assertIn("Tasks by Category:", texts)
        self.assertNotIn("Completion Trend:", texts)
        self.assertIn("Priority Distribution:", texts)
        images = [op for op in writer.ops if op[0] == "image"]
        self.assertEqual([op[1] for op in images], ["cat-image", "pri-image"])
        # The priority chart follows the category chart directly, with no gap for the trend.
        self.assertEqual(images[1][2] - images[0][2], 90)

    def test_block_order(self):
        writer, _ = self._export([_task(title="Only")], charts={"trend": "trend-image"})
        texts = writer.texts()
        self.assertLess(texts.index("Completion Rate: 0.0%"), texts.index("Visual Summaries"))
        self.assertLess(texts.index("Completion Trend:"), texts.index("Task Details"))
        self.assertEqual(texts[texts.index("Task Details") + 1], "1. Only")
        self.assertEqual(
            texts[texts.index("Task Details") + 2],
            "   Due: Jan 1, 2024, Priority: Medium, Status: Pending",
        )

    def test_long_task_list_continues_on_new_pages(self):
        tasks = [_task(title=f"Task {n:02d}", due_date=JAN_1) for n in range(40)]
        writer, document = self._export(tasks)

        page_breaks = [i for i, op in enumerate(writer.ops) if op[0] == "page"]
        self.assertGreaterEqual(len(page_breaks), 1)
        self.assertEqual(document.page_count, len(page_breaks) + 1)
        for index in page_breaks:
            self.assertEqual(writer.ops[index + 1][1], "Task Details (continued)")
            self.assertEqual(writer.ops[index + 1][2], 20)

        titles = [t for t in writer.texts() if t[:1].isdigit()]
        self.assertEqual(titles, [f"{n + 1}. Task {n:02d}" for n in range(40)])

    def test_no_block_crosses_the_bottom_margin(self):
        tasks = [_task(title=f"T{n}") for n in range(60)]
        writer, _ = self._export(tasks, charts={"category": "a", "trend": "b", "priority": "c"})
        for op in writer.ops:
            if op[0] == "text":
                self.assertLessEqual(op[2] + RecordingWriter.LINE_HEIGHT, 280)

    def test_missing_result_raises_before_writing(self):
        factory = mock.Mock()
        with self.assertRaises(ExportDataUnavailableError):
            DocumentExporter(factory).export(None, self.rng)
        factory.assert_not_called()

    def test_report_filename(self):
        self.assertEqual(report_filename(self.rng), "Task_Report_2024-01-01_to_2024-01-07.pdf")


class ExportReportTests(SimpleTestCase):
    rng = DateRange(JAN_1, JAN_7)

    def test_fetch_failure_aborts_without_document(self):
        factory = mock.Mock()

        def list_tasks(user, start, end):
            raise DatabaseError("down")

        with self.assertRaises(ExportDataUnavailableError):
            export_report("user", self.rng, list_tasks=list_tasks, exporter=DocumentExporter(factory))
        factory.assert_not_called()

    def test_empty_period_exports_without_charts(self):
        writer = RecordingWriter()
        document = export_report(
            "user", self.rng,
            list_tasks=lambda user, start, end: [],
            exporter=DocumentExporter(lambda: writer),
        )
        self.assertFalse([op for op in writer.ops if op[0] == "image"])
        self.assertIn(EMPTY_MESSAGE, writer.texts())
        self.assertEqual(document.filename, "Task_Report_2024-01-01_to_2024-01-07.pdf")


class PdfRenderingTests(SimpleTestCase):
    rng = DateRange(JAN_1, JAN_7)

    def test_empty_series_renders_nothing(self):
        view = build_view(aggregate([], self.rng), self.rng)
        self.assertEqual(render_charts(view), {"category": None, "trend": None, "priority": None})

    def test_charts_render_for_data(self):
        tasks = [_done(datetime.date(2024, 1, 3), category="Work", priority="High"), _task(category="Home")]
        view = build_view(aggregate(tasks, self.rng), self.rng)
        charts = render_charts(view)
        for name in ("category", "trend", "priority"):
            self.assertIsNotNone(charts[name])
        self.assertIsNotNone(render_chart(view.priority_series, 80, 80))

    def test_pdf_bytes(self):
        tasks = [_done(datetime.date(2024, 1, 3), category="Work", priority="High")]
        tasks += [_task(title=f"Task {n}", category="Home") for n in range(50)]
        result = aggregate(tasks, self.rng)
        charts = render_charts(build_view(result, self.rng))
        document = export_document(result, self.rng, charts)
        self.assertTrue(document.content.startswith(b"%PDF"))
        self.assertGreater(document.page_count, 1)

    def test_writer_measures_wrapped_text(self):
        writer = PdfWriter()
        one_line = writer.measure_text("short", 170, 9)
        wrapped = writer.measure_text("word " * 200, 170, 9)
        self.assertGreater(wrapped, one_line * 2)

    def test_default_font_is_helvetica(self):
        self.assertEqual(PdfWriter().font_name, "Helvetica")

    def test_truetype_font_from_settings(self):
        with override_settings(SKED_PDF_FONT_PATH=VERA_TTF):
            writer = PdfWriter()
        self.assertEqual(writer.font_name, "Vera")
        self.assertIn("Vera", pdfmetrics.getRegisteredFontNames())
        writer.write_text("Café crème brûlée", 20, 20, 170)
        self.assertTrue(writer.save("fonts.pdf").startswith(b"%PDF"))

    def test_registering_twice_is_harmless(self):
        self.assertEqual(register_font(VERA_TTF), "Vera")
        self.assertEqual(register_font(VERA_TTF), "Vera")


class AnalyticsApiTests(TestCase):
    url = "/api/analytics/tasks"

    def setUp(self):
        self.user = User.objects.create_user(username="a@example.com", email="a@example.com", password="pw")
        self.auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_token(self.user)}"}
        Task.objects.create(
            user=self.user, title="Ship", due_date=datetime.date(2024, 1, 3),
            priority="High", category="Work", completed=True,
            completed_at=datetime.datetime(2024, 1, 3, 15, tzinfo=UTC),
        )
        Task.objects.create(user=self.user, title="Later", due_date=datetime.date(2024, 1, 10))
        other = User.objects.create_user(username="b@example.com", password="pw")
        Task.objects.create(user=other, title="Not mine", due_date=datetime.date(2024, 1, 3))

    def test_returns_aggregation(self):
        response = self.client.get(self.url, {"startDate": "2024-01-01", "endDate": "2024-01-07"}, **self.auth)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["totalTasks"], 1)
        self.assertEqual(data["completedTasks"], 1)
        self.assertEqual(data["pendingTasks"], 0)
        self.assertEqual(data["completionRate"], 100.0)
        self.assertEqual(data["categoryBreakdown"], {"Work": 1})
        self.assertEqual(data["priorityBreakdown"], {"High": 1, "Medium": 0, "Low": 0})
        self.assertEqual(data["completionTrend"], {"2024-01-03": 1})
        self.assertEqual([t["title"] for t in data["tasksInPeriod"]], ["Ship"])

    def test_missing_dates_is_400(self):
        response = self.client.get(self.url, {"startDate": "2024-01-01"}, **self.auth)
        self.assertEqual(response.status_code, 400)

    def test_reversed_range_is_400(self):
        response = self.client.get(self.url, {"startDate": "2024-01-07", "endDate": "2024-01-01"}, **self.auth)
        self.assertEqual(response.status_code, 400)

    def test_no_token_is_401(self):
        response = self.client.get(self.url, {"startDate": "2024-01-01", "endDate": "2024-01-07"})
        self.assertEqual(response.status_code, 401)

    def test_bad_token_is_403(self):
        response = self.client.get(
            self.url, {"startDate": "2024-01-01", "endDate": "2024-01-07"},
            HTTP_AUTHORIZATION="Bearer not-a-token",
        )
        self.assertEqual(response.status_code, 403)

    def test_fetch_failure_is_500(self):
        with mock.patch("reports.views.load_aggregation", side_effect=DataFetchError("down")):
            response = self.client.get(self.url, {"startDate": "2024-01-01", "endDate": "2024-01-07"}, **self.auth)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Server error"})


class ReportPageTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="a@example.com", email="a@example.com", password="pw")
        self.client.force_login(self.user)
        self.params = {"period": "custom", "start": "2024-01-01", "end": "2024-01-07"}

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get(reverse("reports:report"))
        self.assertEqual(response.status_code, 302)
        self.assertIn("/login/", response.url)

    def test_renders_report(self):
        Task.objects.create(user=self.user, title="Water plants", due_date=datetime.date(2024, 1, 2))
        response = self.client.get(reverse("reports:report"), self.params)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Water plants")
        self.assertContains(response, "Jan 1, 2024 – Jan 7, 2024")
        self.assertEqual(response.context["view"].cards[0].value, "1")

    def test_empty_period_shows_placeholder(self):
        response = self.client.get(reverse("reports:report"), self.params)
        self.assertContains(response, EMPTY_MESSAGE)

    def test_invalid_range_shows_error(self):
        params = dict(self.params, start="2024-01-09")
        response = self.client.get(reverse("reports:report"), params)
        self.assertEqual(response.status_code, 400)
        self.assertIsNone(response.context["view"])
        self.assertContains(response, "is after end date", status_code=400)

    def test_fetch_failure_shows_inline_error(self):
        with mock.patch("reports.views.load_aggregation", side_effect=DataFetchError("down")):
            response = self.client.get(reverse("reports:report"), self.params)
        self.assertContains(response, "Failed to load report", status_code=503)
        self.assertIsNone(response.context["view"])

    def test_export_downloads_pdf(self):
        Task.objects.create(user=self.user, title="Water plants", due_date=datetime.date(2024, 1, 2))
        response = self.client.get(reverse("reports:report_export"), self.params)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn("Task_Report_2024-01-01_to_2024-01-07.pdf", response["Content-Disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_export_failure_redirects_without_file(self):
        with mock.patch("reports.export.load_aggregation", side_effect=DataFetchError("down")):
            response = self.client.get(reverse("reports:report_export"), self.params)
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("reports:report"), response.url)
