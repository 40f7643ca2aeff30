"""Data models passed between the parsing stages."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from alfieri.errors import ExtractionError


@dataclass(frozen=True)
class FilmBlock:
    """
    One film section extracted from the newsletter HTML.

    The text keeps the block's line structure: every <br> became a newline.
    """

    title: str
    text: str


@dataclass(frozen=True)
class DateEntry:
    """
    A recognised schedule line such as "giovedì 26 settembre • ore 17:00".

    The weekday is kept only for diagnostics and is never checked against
    the resolved date.
    """

    day: int
    times: tuple[tuple[int, int], ...]  # (hour, minute), one or two values
    month: str | None = None
    weekday: str | None = None
    details: str | None = None
    source: str = ""


@dataclass(frozen=True)
class Passthrough:
    """A line the grammar did not recognise, kept verbatim."""

    text: str


ScheduleNode = DateEntry | Passthrough


@dataclass(frozen=True)
class NewsletterWindow:
    """Programme window printed in the subject line, both ends inclusive."""

    start: date
    end: date

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class ShowtimeRecord:
    """
    A normalized showtime ready for the novelty filter.

    Two records with the same dedup_key describe the same showing.
    """

    title: str
    date: date
    times: tuple[time, ...]
    details: str | None
    dedup_key: str
    timezone: str = "Europe/Rome"
    newsletter_link: str | None = None

    @property
    def starts_at(self) -> list[datetime]:
        """Timezone-aware start datetimes, one per time."""
        tz = ZoneInfo(self.timezone)
        return [datetime.combine(self.date, t, tzinfo=tz) for t in self.times]

    @property
    def times_label(self) -> str:
        """Times as "17:00,21:15", the form stored in seen_showtimes."""
        return ",".join(t.strftime("%H:%M") for t in self.times)


@dataclass
class ExtractionResult:
    """
    Outcome of extracting film blocks from one newsletter.

    An empty blocks list with no errors is a legitimate off-week newsletter.
    """

    blocks: list[FilmBlock] = field(default_factory=list)
    errors: list[ExtractionError] = field(default_factory=list)
    newsletter_link: str | None = None
    subject: str | None = None  # <title> of the page, when it has one
