"""Read-only reports."""

from finledger.queries.reports import ReportBuilder

__all__ = ["ReportBuilder"]
