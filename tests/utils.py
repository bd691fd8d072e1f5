from datetime import date, timedelta

MONDAY = 0  # date.weekday() numbering
MONDAY_INDEX = 1  # stored day_of_week numbering, 0=Sunday


def upcoming(weekday: int, min_days: int = 1, today: date = None) -> date:
    """Next date falling on `weekday` (date.weekday() numbering) at least min_days away"""
    today = today or date.today()
    day = today + timedelta(days=min_days)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day
