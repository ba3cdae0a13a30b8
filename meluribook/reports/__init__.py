"""Reporting package."""

from meluribook.reports.service import ReportQueryError, ReportService

__all__ = ["ReportQueryError", "ReportService"]
