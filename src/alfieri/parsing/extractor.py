"""Film block extraction from newsletter HTML using BeautifulSoup."""

import logging

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from alfieri.errors import ExtractionError
from alfieri.parsing.models import ExtractionResult, FilmBlock
from alfieri.utils.text import collapse_whitespace, flatten_line_breaks, normalise_title

logger = logging.getLogger(__name__)

# Each film section is a nested table whose heading is an <h1> holding the title
FILM_TITLE_SELECTOR = "td h1"
# Nearest ancestor holding the title and its schedule. html.parser only
# produces <tbody> when the source has one, so <table> is accepted too.
BLOCK_CONTAINER_TAGS = ["tbody", "table"]
# "Visualizza nel browser" archive link at the top of the newsletter
NEWSLETTER_LINK_SELECTOR = "table td table td p a[href]"
# The archived page repeats the mail subject, programme window included
NEWSLETTER_SUBJECT_SELECTOR = "title"

LINE_BREAK_TAGS = {"br", "p", "div", "li", "tr", "h2", "h3", "h4"}
IGNORED_TAGS = {"script", "style", "head", "title"}


def extract_film_blocks(html: str) -> ExtractionResult:
    """
    Locate every film section in the newsletter.

    Sections whose structure is unexpected are reported in ``errors`` and
    skipped; the other sections are still returned. A newsletter with no
    film section yields an empty result, which is not an error.
    """
    soup = BeautifulSoup(html, "html.parser")
    result = ExtractionResult(
        newsletter_link=_find_newsletter_link(soup),
        subject=_find_subject(soup),
    )

    title_nodes = soup.select(FILM_TITLE_SELECTOR)
    logger.info(f"Found {len(title_nodes)} film title nodes")
    title_ids = {id(node) for node in title_nodes}

    for position, title_node in enumerate(title_nodes, start=1):
        try:
            result.blocks.append(_extract_block(title_node, title_ids, position))
        except ExtractionError as e:
            logger.warning(f"Skipping film section #{position}: {e}")
            result.errors.append(e)

    return result


def _find_newsletter_link(soup: BeautifulSoup) -> str | None:
    link = soup.select_one(NEWSLETTER_LINK_SELECTOR)
    if link is None:
        return None
    href = str(link.get("href") or "").strip()
    return href or None


def _find_subject(soup: BeautifulSoup) -> str | None:
    node = soup.select_one(NEWSLETTER_SUBJECT_SELECTOR)
    if node is None:
        return None
    return collapse_whitespace(node.get_text(" ")) or None


def _extract_block(title_node: Tag, title_ids: set[int], position: int) -> FilmBlock:
    title = normalise_title(title_node.get_text(" "))
    if not title:
        raise ExtractionError(f"Film title #{position} has no text")

    container = title_node.find_parent(BLOCK_CONTAINER_TAGS)
    if container is None:
        raise ExtractionError(f"'{title}' is not inside a table")

    return FilmBlock(title=title, text=_block_text(container, title_node, title_ids))


def _block_text(container: Tag, title_node: Tag, title_ids: set[int]) -> str:
    """
    Text following the title inside its container, one line per <br>/block.

    Stops at the next film title so sections sharing a container are not
    attributed to each other.
    """
    parts: list[str] = []
    started = False

    for element in container.descendants:
        if element is title_node:
            started = True
            continue
        if not started:
            continue

        if isinstance(element, Tag):
            if id(element) in title_ids:
                break
            if element.name in LINE_BREAK_TAGS:
                parts.append("\n")
            continue

        if not isinstance(element, NavigableString) or isinstance(element, Comment):
            continue
        if any(parent is title_node for parent in element.parents):
            continue
        if element.parent is not None and element.parent.name in IGNORED_TAGS:
            continue
        parts.append(flatten_line_breaks(str(element)))

    return " ".join(parts)
