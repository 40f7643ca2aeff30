"""Text normalization utilities shared by the parser and the dedup key."""

import re

# Regular and non-breaking spaces are interchangeable in newsletter text
WHITESPACE_RE = re.compile(r"[\s\u00a0]+")


def collapse_whitespace(text: str) -> str:
    """
    Collapse runs of whitespace (including NBSP) into one space and strip.

    Examples:
        "  ore 17:00 " → "ore 17:00"
        "MARIA\n  MONTESSORI" → "MARIA MONTESSORI"
    """
    return WHITESPACE_RE.sub(" ", text).strip()


def flatten_line_breaks(text: str) -> str:
    """Turn hard-wrapped source text into a single line, keeping NBSPs."""
    return re.sub(r"[\r\n\t]+", " ", text)


def normalise_title(title: str) -> str:
    """
    Normalize a film title for display.

    Collapses whitespace and strips decorative quotes the newsletter
    sometimes wraps titles in: "«MAKING OF»" → "MAKING OF".
    """
    title = collapse_whitespace(title)
    title = title.strip("«»\"“”")
    return title.strip()


def fingerprint_text(text: str | None) -> str:
    """
    Normalize free text for fingerprinting.

    Case-folded and whitespace-collapsed so that "Versione  originale" and
    "versione ORIGINALE" produce the same fingerprint input.
    """
    if not text:
        return ""
    return collapse_whitespace(text).casefold()
