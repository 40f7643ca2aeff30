"""Schedule parser turning a film block's text into DateEntry values."""

import logging

from alfieri.errors import ParseError
from alfieri.parsing.grammar import DATE_ENTRY_RE, split_time
from alfieri.parsing.models import DateEntry, FilmBlock, Passthrough, ScheduleNode
from alfieri.utils.text import collapse_whitespace

logger = logging.getLogger(__name__)


def parse_schedule(text: str) -> list[ScheduleNode]:
    """
    Parse every line of a block's text.

    Never raises: lines the grammar does not recognise come back as
    Passthrough nodes so callers can see what was left unparsed.
    Blank lines are dropped.
    """
    nodes: list[ScheduleNode] = []
    for line in text.split("\n"):
        if not line.strip():
            continue
        entry = parse_line(line)
        nodes.append(entry if entry is not None else Passthrough(collapse_whitespace(line)))
    return nodes


def parse_line(line: str) -> DateEntry | None:
    """Parse a single schedule line, or return None if it is not one."""
    m = DATE_ENTRY_RE.match(line)
    if not m:
        return None

    day = int(m.group("day"))
    if not 1 <= day <= 31:
        return None

    times = [split_time(m.group("first_time"))]
    if m.group("second_time"):
        times.append(split_time(m.group("second_time")))

    month = m.group("month")
    weekday = m.group("weekday")
    details = collapse_whitespace(m.group("details"))

    return DateEntry(
        day=day,
        times=tuple(times),
        month=month.lower() if month else None,
        weekday=weekday.lower() if weekday else None,
        details=details or None,
        source=collapse_whitespace(line),
    )


def parse_block(block: FilmBlock) -> list[DateEntry]:
    """
    Parse a film block into its date entries.

    Raises:
        ParseError: if the block contains no recognisable date entry.
    """
    nodes = parse_schedule(block.text)
    entries = [n for n in nodes if isinstance(n, DateEntry)]
    if not entries:
        raise ParseError(block.title)

    skipped = len(nodes) - len(entries)
    if skipped:
        logger.debug(f"'{block.title}': {len(entries)} entries, {skipped} unparsed lines")
    return entries
