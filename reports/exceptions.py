class ReportError(Exception):
    """Base class for report generation and export failures."""


class InvalidRangeError(ReportError):
    """A date range is missing a bound, malformed, or starts after it ends."""


class DataFetchError(ReportError):
    """The Task Store could not be read."""


class ExportDataUnavailableError(ReportError):
    """No aggregation was available to export; no document was written."""
