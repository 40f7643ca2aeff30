"""
Grammar for the schedule lines printed under each film in the newsletter.

A schedule line looks like:

    giovedì 26 settembre • ore 17:00 e ore 21:15 — versione originale

and is made of:

- a date component: optional weekday, 1-2 digit day, optional month;
- an optional separator glyph (•, ·, |, -, –, —, comma);
- a time component: "ore HH:MM", optionally followed by "e ore HH:MM";
- optional free-text details running to the end of the line.

Regular spaces, tabs and non-breaking spaces are all accepted as whitespace.
Month and weekday names are matched case-insensitively.
"""

import re

MONTHS: dict[str, int] = {
    "gennaio": 1,
    "febbraio": 2,
    "marzo": 3,
    "aprile": 4,
    "maggio": 5,
    "giugno": 6,
    "luglio": 7,
    "agosto": 8,
    "settembre": 9,
    "ottobre": 10,
    "novembre": 11,
    "dicembre": 12,
}

WEEKDAYS: tuple[str, ...] = (
    "lunedì",
    "martedì",
    "mercoledì",
    "giovedì",
    "venerdì",
    "sabato",
    "domenica",
)

WS = r"[ \t\u00a0]"

# "giovedì", "giovedi" and "giovedi'" all appear in hand-written newsletters
WEEKDAY = r"luned[iì]|marted[iì]|mercoled[iì]|gioved[iì]|venerd[iì]|sabato|domenica"
MONTH = "|".join(MONTHS)
SEPARATOR = r"[•·|,\-–—]"
TIME = r"\d{1,2}[:.]\d{2}"

DATE_ENTRY_RE = re.compile(
    rf"""
    ^{WS}*
    (?:(?P<weekday>{WEEKDAY})'?{WS}+)?
    (?P<day>\d{{1,2}})
    (?:{WS}+(?P<month>{MONTH})\b)?
    {WS}*(?:{SEPARATOR}{WS}*)?
    ore{WS}+(?P<first_time>{TIME})
    (?:{WS}*e{WS}+(?:ore{WS}+)?(?P<second_time>{TIME}))?
    (?P<details>.*)$
    """,
    re.IGNORECASE | re.VERBOSE,
)

# Subject line window: "programmazione 25 settembre > 2 ottobre", "2 > 8 ottobre"
SUBJECT_WINDOW_RE = re.compile(
    rf"""
    (?<!\d)(?P<start_day>\d{{1,2}})
    (?:{WS}+(?P<start_month>{MONTH}))?
    {WS}*(?:>|-|–|—|al\b){WS}*
    (?P<end_day>\d{{1,2}}){WS}+(?P<end_month>{MONTH})\b
    """,
    re.IGNORECASE | re.VERBOSE,
)

TIME_PARTS_RE = re.compile(r"(\d{1,2})[:.](\d{2})")


def month_number(name: str) -> int:
    """Map an Italian month name to 1-12, raising KeyError if unknown."""
    return MONTHS[name.lower()]


def split_time(value: str) -> tuple[int, int]:
    """
    Split "20:30" or "20.30" into (20, 30).

    Range checks happen during normalization, so "25:00" is returned as-is.
    """
    m = TIME_PARTS_RE.fullmatch(value.strip())
    if not m:
        raise ValueError(f"Not a time: {value!r}")
    return int(m.group(1)), int(m.group(2))
