"""
Scripture reference tokenizer.

Finds references such as

    John 3:16
    1 John 2:1-5
    Matthew 5:1-10,12-15
    Gen 1:1 NIV

in free text and returns them as ScriptureReference records carrying the
exact matched substring and its [start, end) offsets in the source text.

The grammar is a single composite regex built from the canon registry's
book and edition alternations. Verse numbers are required: chapter-only
mentions ("Psalm 23") are not references. Detection works on one contiguous
string; a reference split across separately styled runs is not seen.
"""

import re
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern

from canon_registry import CanonRegistry
from verse_ranges import expand_verse_range, format_verse_range


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class ScriptureReference:
    """A scripture reference detected in text."""
    text: str  # Exact matched substring
    book: str  # Book code, e.g. "JHN"
    chapter: int
    verses: List[int] = field(default_factory=list)  # Sorted, unique, all >= 1
    version: Optional[str] = None  # Upper-cased edition symbol, if written
    start_index: int = 0  # Offset of the match in the source text
    end_index: int = 0  # Exclusive end offset

    @property
    def verse_expression(self) -> str:
        """Compact verse notation, e.g. "3-12" or "1,3,5-7"."""
        return format_verse_range(self.verses)

    def to_standard_format(self, registry: Optional[CanonRegistry] = None) -> str:
        """Convert to standard citation format, e.g. "John 3:16 NIV"."""
        return format_reference(self, registry)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'matchedText': self.text,
            'bookCode': self.book,
            'chapter': self.chapter,
            'verses': list(self.verses),
            'verseExpression': self.verse_expression,
            'startOffset': self.start_index,
            'endOffset': self.end_index,
        }
        if self.version is not None:
            result['edition'] = self.version
        return result


# ============================================================================
# DEBUG LOGGING
# ============================================================================

def _debug_log(message: str, debug: bool = False, prefix: str = "[Parser]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


# ============================================================================
# TOKENIZER
# ============================================================================

# Verse expression: ASCII digit runs, optional dash range, optional comma-separated repeats
VERSE_EXPRESSION = r'[0-9]+(?:[–—-][0-9]+)?(?:,\s*[0-9]+(?:[–—-][0-9]+)?)*'


def build_reference_pattern(registry: CanonRegistry) -> Pattern:
    """
    Compile the composite reference pattern:

        <book> <chapter>:<verses> [<edition>]
    """
    return re.compile(
        r'\b(?P<book>' + registry.book_alternation_pattern() + r')'
        r'\s+(?P<chapter>[0-9]+)'
        r':(?P<verses>' + VERSE_EXPRESSION + r')'
        r'(?:\s+(?P<version>' + registry.edition_alternation_pattern() + r'))?'
        r'\b',
        re.IGNORECASE
    )


class ReferenceTokenizer:
    """
    Extracts structured references from raw text.

    The compiled pattern is built on first use and then reused. Matches
    whose book does not resolve, whose chapter is not a positive integer or
    whose verse expression expands to nothing are dropped silently: free
    text is full of chapter:verse shaped coincidences.
    """

    def __init__(self, registry: Optional[CanonRegistry] = None, debug: bool = False):
        self.registry = registry or CanonRegistry()
        self.debug = debug
        self._pattern: Optional[Pattern] = None

    @property
    def pattern(self) -> Pattern:
        if self._pattern is None:
            self._pattern = build_reference_pattern(self.registry)
        return self._pattern

    def _build_reference(self, match: 're.Match') -> Optional[ScriptureReference]:
        book = self.registry.lookup_book(match.group('book'))
        if book is None:
            _debug_log(f"Unknown book '{match.group('book')}' in '{match.group(0)}'", self.debug)
            return None

        try:
            chapter = int(match.group('chapter'))
        except ValueError:
            return None
        if chapter <= 0:
            _debug_log(f"Invalid chapter in '{match.group(0)}'", self.debug)
            return None

        verses = expand_verse_range(match.group('verses'))
        if not verses:
            _debug_log(f"Empty verse range in '{match.group(0)}'", self.debug)
            return None

        version = match.group('version')

        return ScriptureReference(
            text=match.group(0),
            book=book.code,
            chapter=chapter,
            verses=verses,
            version=version.upper() if version else None,
            start_index=match.start(),
            end_index=match.end(),
        )

    def parse_all(self, text: str) -> List[ScriptureReference]:
        """Return every reference in text, ordered by start offset."""
        references: List[ScriptureReference] = []
        if not text:
            return references

        for match in self.pattern.finditer(text):
            reference = self._build_reference(match)
            if reference is not None:
                references.append(reference)

        if references:
            _debug_log(f"Found {len(references)} reference(s): "
                       f"{', '.join(r.text for r in references)}", self.debug)
        return references

    def parse_first(self, text: str) -> Optional[ScriptureReference]:
        """Return the first reference in text, or None."""
        references = self.parse_all(text)
        return references[0] if references else None

    def contains_any(self, text: str) -> bool:
        """
        Quick pre-check: does the text match the reference grammar at all?

        Only the pattern is tested; book, chapter and verse validation is
        left to parse_all().
        """
        if not text:
            return False
        return self.pattern.search(text) is not None


# ============================================================================
# FORMATTING AND VALIDATION
# ============================================================================

def format_reference(reference: ScriptureReference, registry: Optional[CanonRegistry] = None) -> str:
    """
    Format a reference for display.

        JHN 3 [16]      => "John 3:16"
        MAT 5 [1, 2, 3] => "Matthew 5:1-3"
    """
    if not reference.book or not reference.chapter:
        return ''

    registry = registry or CanonRegistry()
    book = registry.lookup_book(reference.book)
    result = f"{book.name if book else reference.book} {reference.chapter}"

    if reference.verses:
        result += f":{format_verse_range(reference.verses)}"
    if reference.version:
        result += f" {reference.version}"
    return result


def is_valid_reference(reference: ScriptureReference, registry: Optional[CanonRegistry] = None) -> bool:
    """Check that a reference names a known book, a positive chapter and positive verses."""
    if not reference.book or not reference.chapter:
        return False

    registry = registry or CanonRegistry()
    if registry.lookup_book(reference.book) is None:
        return False
    if reference.chapter <= 0:
        return False
    return all(v > 0 for v in reference.verses)
