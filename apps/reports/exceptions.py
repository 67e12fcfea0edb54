"""
Domain exceptions for reports app.

Exception Hierarchy:
    ReportsServiceError (base)
    └── InvalidDateRangeError

Usage:
    from apps.reports.exceptions import InvalidDateRangeError

    if start_date > end_date:
        raise InvalidDateRangeError("Start date must be on or before end date")
"""


class ReportsServiceError(Exception):
    """
    Base exception for all reports service errors.

    Views can catch this to turn any report error into a 400:

        try:
            data = ReportQueries.owner_overview(owner=user)
        except ReportsServiceError as e:
            return Response({'error': str(e)}, status=400)
    """

    pass


class InvalidDateRangeError(ReportsServiceError):
    """Raised when start_date is after end_date."""

    pass
