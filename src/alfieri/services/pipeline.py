"""Extraction → parsing → normalization → novelty pipeline."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from alfieri.config import settings
from alfieri.errors import ParseError, StorageError
from alfieri.parsing.extractor import extract_film_blocks
from alfieri.parsing.models import FilmBlock, NewsletterWindow
from alfieri.parsing.normalizer import normalize_entries, reference_date
from alfieri.parsing.parser import parse_block
from alfieri.parsing.subject import parse_subject_window
from alfieri.schemas.report import PipelineReport, ProblemReport
from alfieri.services.novelty import NoveltyFilter, Outcome

logger = logging.getLogger(__name__)


async def process_newsletter(
    html: str,
    received_at: datetime,
    novelty: NoveltyFilter,
    subject: str | None = None,
) -> PipelineReport:
    """
    Run one newsletter body through the whole pipeline.

    Shared by the Mailgun webhook and the scheduler-triggered refetch, so
    both converge on the same dedup keys. A failure in one film block never
    stops the others. Once the dedup store fails, no further record is
    published in this pass (fail closed).

    Args:
        html: Newsletter HTML body
        received_at: When the newsletter arrived (reference for month/year)
        novelty: Novelty filter wired to a store and a publisher
        subject: Subject line, used for the programme window if present.
            Defaults to the page <title>, which archived copies of the
            newsletter carry.

    Returns:
        Counts and problems for the pass
    """
    tz = ZoneInfo(settings.newsletter_timezone)
    extraction = extract_film_blocks(html)
    if subject is None and extraction.subject:
        logger.info(f"No subject given, using page title: {extraction.subject!r}")
        subject = extraction.subject
    window = parse_subject_window(subject, reference_date(received_at, tz))

    report = PipelineReport(
        blocks=len(extraction.blocks),
        newsletter_link=extraction.newsletter_link,
    )
    for error in extraction.errors:
        report.problems.append(ProblemReport(kind=type(error).__name__, message=str(error)))

    if not extraction.blocks:
        logger.info("Newsletter contains no film sections")

    for block in extraction.blocks:
        try:
            await _process_block(block, received_at, window, extraction.newsletter_link, novelty, report)
        except ParseError as e:
            logger.warning(f"Skipping '{block.title}': {e}")
            report.problems.append(ProblemReport(kind="ParseError", film=block.title, message=str(e)))
        except Exception as e:
            logger.error(f"Unexpected error processing '{block.title}': {e}", exc_info=True)
            report.problems.append(
                ProblemReport(kind=type(e).__name__, film=block.title, message=str(e))
            )

    logger.info(
        f"Newsletter processed: {report.blocks} films, {report.records} showtimes, "
        f"{report.published} published, {report.duplicates} duplicates, "
        f"{len(report.problems)} problems"
    )

    if report.problems:
        await novelty.publisher.report_error(_summarise_problems(report))

    return report


async def _process_block(
    block: FilmBlock,
    received_at: datetime,
    window: NewsletterWindow | None,
    newsletter_link: str | None,
    novelty: NoveltyFilter,
    report: PipelineReport,
) -> None:
    entries = parse_block(block)
    normalized = normalize_entries(
        block.title,
        entries,
        received_at,
        window=window,
        newsletter_link=newsletter_link,
    )
    for error in normalized.errors:
        report.problems.append(
            ProblemReport(kind=type(error).__name__, film=block.title, message=str(error))
        )

    for record in normalized.records:
        report.records += 1
        if report.storage_failed:
            report.withheld += 1
            continue

        try:
            outcome = await novelty.admit(record)
        except StorageError as e:
            logger.error(f"Dedup store failed, withholding publication: {e}")
            report.storage_failed = True
            report.withheld += 1
            report.problems.append(
                ProblemReport(kind="StorageError", film=block.title, message=str(e))
            )
            continue

        if outcome is Outcome.PUBLISHED:
            report.published += 1
        elif outcome is Outcome.DUPLICATE_SKIP:
            report.duplicates += 1
        else:
            report.publication_failures += 1


def _summarise_problems(report: PipelineReport) -> str:
    lines = [f"Newsletter processed with {len(report.problems)} problem(s):"]
    for problem in report.problems:
        film = f" [{problem.film}]" if problem.film else ""
        lines.append(f"- {problem.kind}{film}: {problem.message}")
    return "\n".join(lines)
