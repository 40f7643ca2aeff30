"""
Showtime normalizer: resolves month and year for parsed date entries.

Month resolution policy, applied per film block:

1. the entry's own month, if printed;
2. the nearest preceding printed month in the same block;
3. the nearest following printed month in the same block;
   an inherited month gives way to the window when it would put the day
   outside it ("28 settembre", "1" with a 25 settembre > 2 ottobre window);
4. the subject-line window, if the day falls inside it in one of its months;
5. the reference month (the day the newsletter arrived), or the month after
   it when the day has already passed.

Year resolution: the reference year, rolled to the next year when the date
would fall more than the rollover tolerance before the reference date.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from alfieri.config import settings
from alfieri.errors import MalformedDateError
from alfieri.parsing.grammar import month_number
from alfieri.parsing.models import DateEntry, NewsletterWindow, ShowtimeRecord
from alfieri.utils.text import fingerprint_text

logger = logging.getLogger(__name__)


@dataclass
class NormalizationResult:
    """Records for one block plus the entries that had to be skipped."""

    records: list[ShowtimeRecord] = field(default_factory=list)
    errors: list[MalformedDateError] = field(default_factory=list)


def reference_date(reference: datetime | date, tz: ZoneInfo) -> date:
    """Calendar date of the reference instant in the newsletter timezone."""
    if isinstance(reference, datetime):
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=tz)
        return reference.astimezone(tz).date()
    return reference


def roll_forward(day: int, month: int, reference: date, tolerance_days: int) -> date:
    """
    Place (day, month) in the reference year, or the next one if it is stale.

    Raises:
        MalformedDateError: if the day does not exist in that month.
    """
    candidate = _make_date(reference.year, month, day)
    if candidate < reference - timedelta(days=tolerance_days):
        candidate = _make_date(reference.year + 1, month, day)
    return candidate


def resolve_months(entries: list[DateEntry]) -> list[int | None]:
    """
    Resolve each entry's month from the block it belongs to.

    Left-to-right fold carrying the last printed month. Entries seen before
    any printed month wait for the first one; entries still waiting at the
    end get None and fall back to the window or reference.
    """
    resolved: list[int | None] = []
    last_month: int | None = None
    waiting: list[int] = []

    for index, entry in enumerate(entries):
        if entry.month:
            last_month = month_number(entry.month)
            for i in waiting:
                resolved[i] = last_month
            waiting.clear()
            resolved.append(last_month)
        elif last_month is not None:
            resolved.append(last_month)
        else:
            resolved.append(None)
            waiting.append(index)

    return resolved


def build_dedup_key(
    title: str, showing_date: date, times: tuple[time, ...], details: str | None
) -> str:
    """
    Fingerprint a showtime.

    Title and details are case-folded and whitespace-collapsed, so surface
    differences between two mailings of the same programme do not matter.
    """
    parts = [
        fingerprint_text(title),
        showing_date.isoformat(),
        ",".join(t.strftime("%H:%M") for t in times),
        fingerprint_text(details),
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def normalize_entries(
    title: str,
    entries: list[DateEntry],
    reference: datetime | date,
    *,
    window: NewsletterWindow | None = None,
    timezone: str | None = None,
    tolerance_days: int | None = None,
    newsletter_link: str | None = None,
) -> NormalizationResult:
    """
    Turn one block's date entries into ShowtimeRecords.

    Args:
        title: Film title of the block
        entries: Entries in document order
        reference: When the newsletter was received
        window: Programme window from the subject line, if known
        timezone: IANA zone the times are printed in (settings default)
        tolerance_days: How far in the past a date may lie before it is
            moved to the next year (settings default)
        newsletter_link: Archive link attached to every record

    Returns:
        One record per valid entry; malformed entries are collected in
        ``errors`` and skipped.
    """
    timezone = timezone or settings.newsletter_timezone
    if tolerance_days is None:
        tolerance_days = settings.year_rollover_tolerance_days
    ref = reference_date(reference, ZoneInfo(timezone))

    result = NormalizationResult()
    for entry, month in zip(entries, resolve_months(entries)):
        try:
            showing_date = _resolve_date(
                entry.day, month, ref, window, tolerance_days, inherited=entry.month is None
            )
            times = tuple(_make_time(hour, minute) for hour, minute in entry.times)
        except MalformedDateError as e:
            logger.warning(f"Skipping entry '{entry.source}' of '{title}': {e}")
            result.errors.append(e)
            continue

        result.records.append(
            ShowtimeRecord(
                title=title,
                date=showing_date,
                times=times,
                details=entry.details,
                dedup_key=build_dedup_key(title, showing_date, times, entry.details),
                timezone=timezone,
                newsletter_link=newsletter_link,
            )
        )

    return result


def _resolve_date(
    day: int,
    month: int | None,
    ref: date,
    window: NewsletterWindow | None,
    tolerance_days: int,
    inherited: bool = False,
) -> date:
    if month is not None:
        if not inherited or window is None:
            return roll_forward(day, month, ref, tolerance_days)

        # An inherited month yields to the window when it puts the day outside it
        error: MalformedDateError | None = None
        try:
            candidate = roll_forward(day, month, ref, tolerance_days)
            if candidate in window:
                return candidate
        except MalformedDateError as e:
            error = e
        in_window = _date_in_window(day, window)
        if in_window is not None:
            return in_window
        if error is not None:
            raise error
        return candidate

    if window is not None:
        in_window = _date_in_window(day, window)
        if in_window is not None:
            return in_window

    candidate = _make_date(ref.year, ref.month, day)
    if candidate < ref:
        next_month = ref.replace(day=1) + timedelta(days=32)
        candidate = _make_date(next_month.year, next_month.month, day)
    return candidate


def _date_in_window(day: int, window: NewsletterWindow) -> date | None:
    """The date with this day number that falls inside the window, if any."""
    for year, month in ((window.start.year, window.start.month), (window.end.year, window.end.month)):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate in window:
            return candidate
    return None


def _make_date(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError as e:
        raise MalformedDateError(f"Invalid date {day:02d}/{month:02d}/{year}: {e}") from e


def _make_time(hour: int, minute: int) -> time:
    try:
        return time(hour, minute)
    except ValueError as e:
        raise MalformedDateError(f"Invalid time {hour:02d}:{minute:02d}: {e}") from e
