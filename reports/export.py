"""Paginated report export.

The layout is a single cursor walking down the page. Before any block is
written the exporter checks whether it still fits above the bottom margin;
if not, it starts a new page with the cursor back at the top margin, and
inside the task list it repeats the section header marked "(continued)".

Block order: title, period, statistics, charts (each optional, each with
its label), task details.
"""

from dataclasses import dataclass

import structlog

from .aggregation import load_aggregation
from .charts import CHART_SIZES, render_charts
from .exceptions import DataFetchError, ExportDataUnavailableError
from .pdf import PdfWriter
from .presentation import EMPTY_MESSAGE, build_view, format_rate, task_entries

log = structlog.get_logger()

# Page geometry in millimetres.
TOP_MARGIN = 20
PAGE_BOTTOM = 280
LEFT_MARGIN = 20
CONTENT_WIDTH = 170

TITLE_SIZE, TITLE_ADVANCE = 20, 10
PERIOD_SIZE, PERIOD_ADVANCE = 12, 15
STAT_SIZE, STAT_ADVANCE = 10, 7
STATS_GAP = 8
HEADING_SIZE, HEADING_ADVANCE = 14, 10
CHART_LABEL_SIZE, CHART_LABEL_GAP, CHART_GAP = 10, 5, 5
ENTRY_SIZE, ENTRY_GAP = 9, 5

TASK_DETAILS_HEADER = "Task Details"
CHART_LABELS = (
    ("category", "Tasks by Category:"),
    ("trend", "Completion Trend:"),
    ("priority", "Priority Distribution:"),
)


@dataclass(frozen=True)
class ExportedDocument:
    filename: str
    content: bytes
    page_count: int


def report_filename(date_range):
    start, end = date_range.iso_bounds()
    return f"Task_Report_{start}_to_{end}.pdf"


class _PageCursor:
    def __init__(self, writer):
        self.writer = writer
        self.page = 1
        self.cursor = TOP_MARGIN
        self.continued_header = None

    def ensure_room(self, height):
        if self.cursor + height <= PAGE_BOTTOM:
            return
        self.writer.add_page()
        self.page += 1
        self.cursor = TOP_MARGIN
        if self.continued_header:
            self._write(f"{self.continued_header} (continued)", HEADING_SIZE)
            self.cursor += HEADING_ADVANCE

    def _write(self, content, size):
        self.writer.write_text(content, LEFT_MARGIN, self.cursor, CONTENT_WIDTH, size)

    def line(self, content, size, advance):
        self.ensure_room(advance)
        self._write(content, size)
        self.cursor += advance

    def image(self, label, image, width, height):
        self.ensure_room(CHART_LABEL_GAP + height)
        self._write(label, CHART_LABEL_SIZE)
        self.writer.write_image(
            image, LEFT_MARGIN, self.cursor + CHART_LABEL_GAP, width, height,
        )
        self.cursor += CHART_LABEL_GAP + height + CHART_GAP

    def entry(self, title, meta):
        title_height = self.writer.measure_text(title, CONTENT_WIDTH, ENTRY_SIZE)
        meta_height = self.writer.measure_text(meta, CONTENT_WIDTH, ENTRY_SIZE)
        self.ensure_room(title_height + meta_height + ENTRY_GAP)
        self._write(title, ENTRY_SIZE)
        self.writer.write_text(
            meta, LEFT_MARGIN, self.cursor + title_height, CONTENT_WIDTH, ENTRY_SIZE,
        )
        self.cursor += title_height + meta_height + ENTRY_GAP


class DocumentExporter:
    """Lay an AggregationResult out as a paginated document.

    *writer_factory* builds a fresh document writer per export; it must
    provide write_text, write_image, add_page, measure_text and save.
    """

    def __init__(self, writer_factory=PdfWriter):
        self.writer_factory = writer_factory

    def export(self, result, date_range, charts=None):
        if result is None:
            raise ExportDataUnavailableError("No report data to export.")
        charts = charts or {}

        writer = self.writer_factory()
        page = _PageCursor(writer)

        page.line("Task Report", TITLE_SIZE, TITLE_ADVANCE)
        page.line(f"Period: {date_range.label}", PERIOD_SIZE, PERIOD_ADVANCE)

        page.line(f"Total Tasks: {result.total_tasks}", STAT_SIZE, STAT_ADVANCE)
        page.line(f"Completed Tasks: {result.completed_tasks}", STAT_SIZE, STAT_ADVANCE)
        page.line(f"Pending Tasks: {result.pending_tasks}", STAT_SIZE, STAT_ADVANCE)
        page.line(f"Completion Rate: {format_rate(result.completion_rate)}", STAT_SIZE, STAT_ADVANCE)
        page.cursor += STATS_GAP

        rendered = [(name, label) for name, label in CHART_LABELS if charts.get(name) is not None]
        if rendered:
            page.line("Visual Summaries", HEADING_SIZE, HEADING_ADVANCE)
            for name, label in rendered:
                page.image(label, charts[name], *CHART_SIZES[name])

        page.line(TASK_DETAILS_HEADER, HEADING_SIZE, HEADING_ADVANCE)
        page.continued_header = TASK_DETAILS_HEADER
        entries = task_entries(result)
        if not entries:
            page.line(EMPTY_MESSAGE, STAT_SIZE, HEADING_ADVANCE)
        for number, entry in enumerate(entries, start=1):
            page.entry(
                f"{number}. {entry.title}",
                f"   Due: {entry.due_display}, Priority: {entry.priority}, "
                f"Status: {entry.status_label}",
            )

        filename = report_filename(date_range)
        content = writer.save(filename)
        log.info(
            "report_exported",
            filename=filename,
            page_count=page.page,
            total_tasks=result.total_tasks,
        )
        return ExportedDocument(filename=filename, content=content, page_count=page.page)


def export_document(result, date_range, charts=None, writer_factory=PdfWriter):
    return DocumentExporter(writer_factory).export(result, date_range, charts)


def export_report(user, date_range, list_tasks=None, exporter=None):
    """Fetch, aggregate, chart and export *user*'s report for *date_range*.

    Raises ExportDataUnavailableError, before any page is written, when the
    task data cannot be fetched.
    """
    try:
        result = load_aggregation(user, date_range, list_tasks=list_tasks)
    except DataFetchError as exc:
        raise ExportDataUnavailableError("Task data is unavailable for export.") from exc

    charts = render_charts(build_view(result, date_range))
    return (exporter or DocumentExporter()).export(result, date_range, charts)
