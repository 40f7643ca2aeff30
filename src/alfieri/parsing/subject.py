"""Programme window parsing from the newsletter subject line."""

import logging
from datetime import date

from alfieri.config import settings
from alfieri.errors import MalformedDateError
from alfieri.parsing.grammar import SUBJECT_WINDOW_RE, month_number
from alfieri.parsing.models import NewsletterWindow
from alfieri.parsing.normalizer import roll_forward

logger = logging.getLogger(__name__)


def parse_subject_window(
    subject: str | None,
    reference: date,
    tolerance_days: int | None = None,
) -> NewsletterWindow | None:
    """
    Parse "Spazio Alfieri • programmazione 25 settembre > 2 ottobre".

    The start month defaults to the end month ("2 > 8 ottobre"). The start
    is placed with the usual year rollover and the end is moved to the next
    year when it would precede the start ("27 dicembre > 3 gennaio").

    Returns:
        The window, or None when the subject has no recognisable range.
    """
    if not subject:
        return None
    m = SUBJECT_WINDOW_RE.search(subject)
    if not m:
        logger.info(f"No programme window in subject: {subject!r}")
        return None

    if tolerance_days is None:
        tolerance_days = settings.year_rollover_tolerance_days

    end_month = month_number(m.group("end_month"))
    start_month = month_number(m.group("start_month")) if m.group("start_month") else end_month

    try:
        start = roll_forward(int(m.group("start_day")), start_month, reference, tolerance_days)
        end = date(start.year, end_month, int(m.group("end_day")))
        if end < start:
            end = end.replace(year=start.year + 1)
    except (MalformedDateError, ValueError) as e:
        logger.warning(f"Invalid programme window in subject {subject!r}: {e}")
        return None

    return NewsletterWindow(start=start, end=end)
