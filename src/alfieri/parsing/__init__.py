"""Newsletter parsing: HTML extraction, schedule grammar and normalization."""

from alfieri.parsing.extractor import extract_film_blocks
from alfieri.parsing.normalizer import normalize_entries
from alfieri.parsing.parser import parse_block, parse_schedule
from alfieri.parsing.subject import parse_subject_window

__all__ = [
    "extract_film_blocks",
    "normalize_entries",
    "parse_block",
    "parse_schedule",
    "parse_subject_window",
]
