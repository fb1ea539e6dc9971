from datetime import date


def trip_duration_days(start_date: date, end_date: date) -> int:
    """Inclusive number of days; a reversed range counts as a one-day trip."""
    if end_date < start_date:
        return 1
    return (end_date - start_date).days + 1
