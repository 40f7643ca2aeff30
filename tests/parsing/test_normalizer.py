"""Unit tests for month/year resolution and dedup keys."""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from alfieri.errors import MalformedDateError
from alfieri.parsing.models import DateEntry, NewsletterWindow
from alfieri.parsing.normalizer import (
    build_dedup_key,
    normalize_entries,
    reference_date,
    resolve_months,
    roll_forward,
)

ROME_TZ = ZoneInfo("Europe/Rome")
RECEIVED = datetime(2024, 9, 24, 10, 0, tzinfo=ROME_TZ)


def entry(day: int, month: str | None = None, *times: tuple[int, int], details: str | None = None) -> DateEntry:
    return DateEntry(day=day, month=month, times=times or ((21, 0),), details=details)


def normalize(entries: list[DateEntry], reference=RECEIVED, **kwargs):
    kwargs.setdefault("timezone", "Europe/Rome")
    kwargs.setdefault("tolerance_days", 30)
    return normalize_entries("MARIA MONTESSORI", entries, reference, **kwargs)


# ---------------------------------------------------------------------------
# resolve_months
# ---------------------------------------------------------------------------


class TestResolveMonths:
    def test_inherits_preceding_month(self) -> None:
        entries = [entry(25, "settembre"), entry(26), entry(1, "ottobre"), entry(2)]
        assert resolve_months(entries) == [9, 9, 10, 10]

    def test_leading_entries_take_following_month(self) -> None:
        entries = [entry(26), entry(27), entry(28, "settembre"), entry(1, "ottobre")]
        assert resolve_months(entries) == [9, 9, 9, 10]

    def test_preceding_month_wins_over_following(self) -> None:
        entries = [entry(30, "settembre"), entry(31), entry(1, "ottobre")]
        assert resolve_months(entries)[1] == 9

    def test_no_month_anywhere_stays_unresolved(self) -> None:
        assert resolve_months([entry(26), entry(27)]) == [None, None]


# ---------------------------------------------------------------------------
# roll_forward / reference_date
# ---------------------------------------------------------------------------


class TestRollForward:
    def test_keeps_reference_year_for_upcoming_dates(self) -> None:
        assert roll_forward(26, 9, date(2024, 9, 24), 30) == date(2024, 9, 26)

    def test_keeps_reference_year_within_tolerance(self) -> None:
        assert roll_forward(1, 9, date(2024, 9, 24), 30) == date(2024, 9, 1)

    def test_rolls_january_into_next_year_in_december(self) -> None:
        assert roll_forward(2, 1, date(2024, 12, 20), 30) == date(2025, 1, 2)

    def test_invalid_day_raises(self) -> None:
        with pytest.raises(MalformedDateError, match="31/09/2024"):
            roll_forward(31, 9, date(2024, 9, 24), 30)

    def test_reference_date_converts_to_newsletter_timezone(self) -> None:
        # 23:30 UTC on the 24th is already the 25th in Rome
        utc = datetime(2024, 9, 24, 23, 30, tzinfo=ZoneInfo("UTC"))
        assert reference_date(utc, ROME_TZ) == date(2024, 9, 25)


# ---------------------------------------------------------------------------
# normalize_entries
# ---------------------------------------------------------------------------


class TestNormalizeEntries:
    def test_month_inheritance_within_block(self) -> None:
        result = normalize([entry(30, "settembre"), entry(1, "ottobre"), entry(2)])

        assert [r.date for r in result.records] == [
            date(2024, 9, 30),
            date(2024, 10, 1),
            date(2024, 10, 2),
        ]

    def test_year_rollover_for_january_in_december(self) -> None:
        december = datetime(2024, 12, 18, 9, 0, tzinfo=ROME_TZ)

        result = normalize([entry(2, "gennaio")], reference=december)

        assert result.records[0].date == date(2025, 1, 2)

    def test_double_showing_is_one_record(self) -> None:
        result = normalize([entry(27, "settembre", (17, 0), (21, 15))])

        assert len(result.records) == 1
        assert result.records[0].times == (time(17, 0), time(21, 15))

    def test_starts_at_is_timezone_aware(self) -> None:
        result = normalize([entry(27, "settembre", (17, 0), (21, 15))])

        assert result.records[0].starts_at == [
            datetime(2024, 9, 27, 17, 0, tzinfo=ROME_TZ),
            datetime(2024, 9, 27, 21, 15, tzinfo=ROME_TZ),
        ]

    def test_malformed_date_skips_only_that_entry(self) -> None:
        result = normalize([entry(26, "settembre"), entry(31), entry(1, "ottobre")])

        assert [r.date.day for r in result.records] == [26, 1]
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], MalformedDateError)

    def test_malformed_time_skips_entry(self) -> None:
        result = normalize([entry(26, "settembre", (25, 0))])

        assert result.records == []
        assert "25:00" in str(result.errors[0])

    def test_window_resolves_blocks_without_month(self) -> None:
        window = NewsletterWindow(start=date(2024, 9, 25), end=date(2024, 10, 2))

        result = normalize([entry(30), entry(1)], window=window)

        assert [r.date for r in result.records] == [date(2024, 9, 30), date(2024, 10, 1)]

    def test_inherited_month_gives_way_to_window(self) -> None:
        window = NewsletterWindow(start=date(2024, 9, 25), end=date(2024, 10, 2))

        result = normalize([entry(28, "settembre"), entry(1)], window=window)

        assert [r.date for r in result.records] == [date(2024, 9, 28), date(2024, 10, 1)]

    def test_inherited_month_inside_window_is_kept(self) -> None:
        window = NewsletterWindow(start=date(2024, 9, 25), end=date(2024, 10, 30))

        result = normalize([entry(1, "ottobre"), entry(26)], window=window)

        assert [r.date for r in result.records] == [date(2024, 10, 1), date(2024, 10, 26)]

    def test_printed_month_outside_window_is_not_moved(self) -> None:
        window = NewsletterWindow(start=date(2024, 9, 25), end=date(2024, 10, 2))

        result = normalize([entry(1, "settembre")], window=window)

        assert result.records[0].date == date(2024, 9, 1)

    def test_reference_month_when_nothing_else_is_known(self) -> None:
        result = normalize([entry(26), entry(3)])

        assert [r.date for r in result.records] == [date(2024, 9, 26), date(2024, 10, 3)]

    def test_attaches_newsletter_link_and_timezone(self) -> None:
        result = normalize([entry(26, "settembre")], newsletter_link="https://example.org/nl")

        record = result.records[0]
        assert record.newsletter_link == "https://example.org/nl"
        assert record.timezone == "Europe/Rome"
        assert record.times_label == "21:00"


# ---------------------------------------------------------------------------
# build_dedup_key
# ---------------------------------------------------------------------------


class TestDedupKey:
    def test_ignores_case_and_whitespace(self) -> None:
        times = (time(19, 0),)
        a = build_dedup_key("MAKING OF", date(2024, 9, 27), times, "— versione  originale")
        b = build_dedup_key("  making   of ", date(2024, 9, 27), times, "— Versione originale")

        assert a == b

    def test_differs_on_date_times_and_details(self) -> None:
        base = build_dedup_key("MAKING OF", date(2024, 9, 27), (time(19, 0),), None)

        assert base != build_dedup_key("MAKING OF", date(2024, 9, 28), (time(19, 0),), None)
        assert base != build_dedup_key("MAKING OF", date(2024, 9, 27), (time(21, 0),), None)
        assert base != build_dedup_key("MAKING OF", date(2024, 9, 27), (time(19, 0),), "v.o.")

    def test_time_order_matters(self) -> None:
        a = build_dedup_key("X", date(2024, 9, 27), (time(17, 0), time(21, 0)), None)
        b = build_dedup_key("X", date(2024, 9, 27), (time(21, 0), time(17, 0)), None)

        assert a != b

    def test_same_text_in_two_mailings_gives_same_key(self) -> None:
        first = normalize([entry(26, "settembre", details="v.o.")])
        second = normalize(
            [entry(26, "settembre", details="  V.O. ")],
            reference=datetime(2024, 9, 25, 8, 0, tzinfo=ROME_TZ),
        )

        assert first.records[0].dedup_key == second.records[0].dedup_key
