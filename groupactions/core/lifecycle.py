"""
Default-filling and validation for actions.
"""

import calendar
from datetime import datetime, timedelta, timezone

from .action import ActionData, ActionDraft
from .errors import InvalidDateRange

DEFAULT_ACTION_DURATION = timedelta(days=7)
RECENT_ACTION_MONTHS = 2

UPDATABLE_ACTION_FIELDS = (
    "title",
    "subtitle",
    "description",
    "thanks_msg",
    "action_type_id",
    "points",
    "start_at",
    "end_at",
)


def as_utc(value: datetime) -> datetime:
    """
    Naive datetimes (from clients or SQLite) are taken to be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def months_before(value: datetime, months: int) -> datetime:
    """
    Calendar month subtraction, clamping the day to the end of the month.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])

    return value.replace(year=year, month=month, day=day)


def open_since(now: datetime, months: int = RECENT_ACTION_MONTHS) -> datetime:
    """
    Actions ending on or after this instant still count as open.
    """
    return months_before(as_utc(now), months)


def fill_action_defaults(
    *,
    group_id: int,
    created_by_user_id: int,
    action_type_id: int,
    default_points: int,
    title: str,
    subtitle: str | None = None,
    description: str | None = None,
    thanks_msg: str | None = None,
    points: int | None = None,
    start_at: datetime | None = None,
    end_at: datetime | None = None,
    now: datetime | None = None,
    duration: timedelta = DEFAULT_ACTION_DURATION,
) -> ActionDraft:
    """
    Validate the requested dates and fill in the defaults for a new action.

    Raises
    ------
    InvalidDateRange
        If `start_at` is after `end_at`, or if only `end_at` is given and it
        is already in the past.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    start_at = as_utc(start_at) if start_at is not None else None
    end_at = as_utc(end_at) if end_at is not None else None

    if start_at is not None and end_at is not None and start_at > end_at:
        raise InvalidDateRange

    if start_at is None and end_at is not None and end_at < now:
        raise InvalidDateRange

    start_at = start_at or now
    end_at = end_at or start_at + duration

    return ActionDraft(
        group_id=group_id,
        action_type_id=action_type_id,
        title=title,
        subtitle=subtitle,
        description=description,
        thanks_msg=thanks_msg,
        points=points or default_points,
        start_at=start_at,
        end_at=end_at,
        created_by_user_id=created_by_user_id,
    )


def apply_action_update(action: ActionData, changes: dict) -> dict:
    """
    Restrict `changes` to the updatable fields and check the resulting date
    range. Returns the filtered changes.
    """
    allowed = {
        key: value
        for key, value in changes.items()
        if key in UPDATABLE_ACTION_FIELDS and value is not None
    }

    for key in ("start_at", "end_at"):
        if key in allowed:
            allowed[key] = as_utc(allowed[key])

    start_at = allowed.get("start_at", as_utc(action.start_at))
    end_at = allowed.get("end_at", as_utc(action.end_at))

    if start_at > end_at:
        raise InvalidDateRange

    return allowed
