"""
Verse range expansion and formatting.

    "1-3"     => [1, 2, 3]
    "1-3,5-7" => [1, 2, 3, 5, 6, 7]
    "1,3-5,7" => [1, 3, 4, 5, 7]

format_verse_range() is the inverse: it folds a verse list back into the
shortest run-length notation, so expand(format(v)) == v for any sorted,
unique list of verse numbers in 1..MAX_VERSE.
"""

import re
from typing import Iterable, List, Optional, Tuple


# Hyphen, en dash, em dash
DASH_PATTERN = re.compile(r'[–—-]')

# Longest chapter (Psalm 119); pieces ending past it are dropped
MAX_VERSE = 176


def _parse_int(text: str) -> Optional[int]:
    """Parse a run of ASCII digits; None for anything else or runs too long to be a verse."""
    text = text.strip()
    if not text or not text.isascii() or not text.isdigit():
        return None
    if len(text.lstrip('0')) > len(str(MAX_VERSE)):
        return None
    return int(text)


def _parse_range(piece: str) -> Optional[Tuple[int, int]]:
    """Parse "a-b" into (a, b); None unless 1 <= a <= b <= MAX_VERSE."""
    parts = DASH_PATTERN.sub('-', piece).split('-')
    if len(parts) != 2:
        return None

    start = _parse_int(parts[0])
    end = _parse_int(parts[1])
    if start is None or end is None or start < 1 or start > end or end > MAX_VERSE:
        return None
    return start, end


def expand_verse_range(range_text: str) -> List[int]:
    """
    Expand a verse range expression into sorted, unique verse numbers.

    Invalid pieces (zero, inverted ranges, verses past MAX_VERSE, junk) are
    dropped one by one; the rest of the expression still counts.
    """
    verses = set()

    for piece in range_text.split(','):
        piece = piece.strip()
        if not piece:
            continue

        if DASH_PATTERN.search(piece):
            bounds = _parse_range(piece)
            if bounds:
                verses.update(range(bounds[0], bounds[1] + 1))
        else:
            verse = _parse_int(piece)
            if verse is not None and 0 < verse <= MAX_VERSE:
                verses.add(verse)

    return sorted(verses)


def format_verse_range(verses: Iterable[int]) -> str:
    """Fold verse numbers into compact notation: [1, 2, 3, 5] => "1-3,5"."""
    ordered = sorted(set(verses))
    if not ordered:
        return ''

    runs: List[str] = []
    run_start = run_end = ordered[0]

    for verse in ordered[1:]:
        if verse == run_end + 1:
            run_end = verse
            continue
        runs.append(str(run_start) if run_start == run_end else f"{run_start}-{run_end}")
        run_start = run_end = verse

    runs.append(str(run_start) if run_start == run_end else f"{run_start}-{run_end}")
    return ','.join(runs)


def is_valid_verse_range(range_text: str) -> bool:
    """True when the expression names at least one valid verse."""
    if not range_text or not isinstance(range_text, str):
        return False
    return len(expand_verse_range(range_text)) > 0
