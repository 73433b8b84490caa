"""
Canon Registry - canonical Bible books and editions with alias lookup.

Holds the static table of the 66 books of the Protestant canon and the known
Bible editions (translations) together with every alias a book or edition may
be written as. The registry normalizes aliases into lookup keys and builds the
regex alternations the reference tokenizer is compiled from.

A CanonRegistry is immutable once constructed. Build one per tagger and share
it by reference with the tokenizer and scanner that need it.
"""

import re
import sys
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class CanonicalBook:
    """A canonical book of the Bible."""
    name: str  # Display name, e.g. "1 Corinthians"
    code: str  # 3-character code, e.g. "1CO"
    testament: str  # 'OT' or 'NT'
    aliases: FrozenSet[str]  # Abbreviations and alternate names, as written

    def all_names(self) -> List[str]:
        """Return the display name followed by every alias."""
        return [self.name] + sorted(self.aliases)


@dataclass(frozen=True)
class BibleEdition:
    """A Bible edition (translation) known to the verse service."""
    abbreviation: str  # e.g. "NIV"
    title: str
    catalog_id: int  # Numeric id in the external verse catalog
    licensed: bool  # False when the text may not be displayed

    def to_dict(self):
        return {
            'abbreviation': self.abbreviation,
            'title': self.title,
            'catalogId': self.catalog_id,
            'licensed': self.licensed,
        }


# ============================================================================
# BIBLE BOOK DATA
# ============================================================================

# (name, code, testament, aliases)
# Aliases are abbreviations and alternate names exactly as they appear in text.
BOOK_TABLE: List[Tuple[str, str, str, List[str]]] = [
    # Old Testament
    ('Genesis', 'GEN', 'OT', ['Gen', 'Ge', 'Gn']),
    ('Exodus', 'EXO', 'OT', ['Exod', 'Exo', 'Ex']),
    ('Leviticus', 'LEV', 'OT', ['Lev', 'Le', 'Lv']),
    ('Numbers', 'NUM', 'OT', ['Num', 'Nu', 'Nm', 'Nb']),
    ('Deuteronomy', 'DEU', 'OT', ['Deut', 'Deu', 'De', 'Dt']),
    ('Joshua', 'JOS', 'OT', ['Josh', 'Jos', 'Jsh']),
    ('Judges', 'JDG', 'OT', ['Judg', 'Jdg', 'Jg', 'Jdgs']),
    ('Ruth', 'RUT', 'OT', ['Rth', 'Ru']),
    ('1 Samuel', '1SA', 'OT', ['1 Sam', '1Sam', '1 Sa', '1Sa', 'I Sam', 'I Sa', 'First Samuel',
                               '1 Sm', '1Sm']),
    ('2 Samuel', '2SA', 'OT', ['2 Sam', '2Sam', '2 Sa', '2Sa', 'II Sam', 'II Sa', 'Second Samuel',
                               '2 Sm', '2Sm']),
    ('1 Kings', '1KI', 'OT', ['1 Kgs', '1Kgs', '1 Ki', '1Ki', 'I Kings', 'I Kgs', 'First Kings',
                              '1 Kin', '1Kin']),
    ('2 Kings', '2KI', 'OT', ['2 Kgs', '2Kgs', '2 Ki', '2Ki', 'II Kings', 'II Kgs', 'Second Kings',
                              '2 Kin', '2Kin']),
    ('1 Chronicles', '1CH', 'OT', ['1 Chr', '1Chr', '1 Ch', '1Ch', 'I Chronicles', 'I Chr',
                                   'First Chronicles', '1 Chron', '1Chron']),
    ('2 Chronicles', '2CH', 'OT', ['2 Chr', '2Chr', '2 Ch', '2Ch', 'II Chronicles', 'II Chr',
                                   'Second Chronicles', '2 Chron', '2Chron']),
    ('Ezra', 'EZR', 'OT', ['Ezr', 'Ez']),
    ('Nehemiah', 'NEH', 'OT', ['Neh', 'Ne']),
    ('Esther', 'EST', 'OT', ['Esth', 'Est', 'Es']),
    ('Job', 'JOB', 'OT', ['Jb']),
    ('Psalm', 'PSA', 'OT', ['Ps', 'Psa', 'Psm', 'Pss', 'Psalms']),
    ('Proverbs', 'PRO', 'OT', ['Prov', 'Pro', 'Prv', 'Pr']),
    ('Ecclesiastes', 'ECC', 'OT', ['Eccles', 'Eccle', 'Ecc', 'Ec', 'Qoh']),
    ('Song of Solomon', 'SNG', 'OT', ['Song', 'Song of Sol', 'SOS', 'So', 'SS',
                                      'Song of Songs', 'Canticles', 'Canticle of Canticles']),
    ('Isaiah', 'ISA', 'OT', ['Isa', 'Is']),
    ('Jeremiah', 'JER', 'OT', ['Jer', 'Je', 'Jr']),
    ('Lamentations', 'LAM', 'OT', ['Lam', 'La']),
    ('Ezekiel', 'EZK', 'OT', ['Ezek', 'Eze', 'Ezk']),
    ('Daniel', 'DAN', 'OT', ['Dan', 'Da', 'Dn']),
    ('Hosea', 'HOS', 'OT', ['Hos', 'Ho']),
    ('Joel', 'JOL', 'OT', ['Joe', 'Jl']),
    ('Amos', 'AMO', 'OT', ['Am']),
    ('Obadiah', 'OBA', 'OT', ['Obad', 'Ob']),
    ('Jonah', 'JON', 'OT', ['Jon', 'Jnh']),
    ('Micah', 'MIC', 'OT', ['Mic', 'Mc']),
    ('Nahum', 'NAM', 'OT', ['Nah', 'Na']),
    ('Habakkuk', 'HAB', 'OT', ['Hab', 'Hb']),
    ('Zephaniah', 'ZEP', 'OT', ['Zeph', 'Zep', 'Zp']),
    ('Haggai', 'HAG', 'OT', ['Hag', 'Hg']),
    ('Zechariah', 'ZEC', 'OT', ['Zech', 'Zec', 'Zc']),
    ('Malachi', 'MAL', 'OT', ['Mal', 'Ml']),
    # New Testament
    ('Matthew', 'MAT', 'NT', ['Matt', 'Mat', 'Mt']),
    ('Mark', 'MRK', 'NT', ['Mrk', 'Mar', 'Mk', 'Mr']),
    ('Luke', 'LUK', 'NT', ['Luk', 'Lk']),
    ('John', 'JHN', 'NT', ['Jhn', 'Jn']),
    ('Acts', 'ACT', 'NT', ['Act', 'Ac', 'Acts of the Apostles']),
    ('Romans', 'ROM', 'NT', ['Rom', 'Ro', 'Rm']),
    ('1 Corinthians', '1CO', 'NT', ['1 Cor', '1Cor', '1 Co', '1Co', 'I Corinthians', 'I Cor',
                                    'First Corinthians']),
    ('2 Corinthians', '2CO', 'NT', ['2 Cor', '2Cor', '2 Co', '2Co', 'II Corinthians', 'II Cor',
                                    'Second Corinthians']),
    ('Galatians', 'GAL', 'NT', ['Gal', 'Ga']),
    ('Ephesians', 'EPH', 'NT', ['Eph', 'Ephes']),
    ('Philippians', 'PHP', 'NT', ['Phil', 'Php', 'Pp']),
    ('Colossians', 'COL', 'NT', ['Col', 'Co']),
    ('1 Thessalonians', '1TH', 'NT', ['1 Thess', '1Thess', '1 Thes', '1Thes', '1 Th', '1Th',
                                      'I Thessalonians', 'I Thess', 'First Thessalonians']),
    ('2 Thessalonians', '2TH', 'NT', ['2 Thess', '2Thess', '2 Thes', '2Thes', '2 Th', '2Th',
                                      'II Thessalonians', 'II Thess', 'Second Thessalonians']),
    ('1 Timothy', '1TI', 'NT', ['1 Tim', '1Tim', '1 Ti', '1Ti', 'I Timothy', 'I Tim',
                                'First Timothy']),
    ('2 Timothy', '2TI', 'NT', ['2 Tim', '2Tim', '2 Ti', '2Ti', 'II Timothy', 'II Tim',
                                'Second Timothy']),
    ('Titus', 'TIT', 'NT', ['Tit', 'Ti']),
    ('Philemon', 'PHM', 'NT', ['Philem', 'Phm', 'Pm']),
    ('Hebrews', 'HEB', 'NT', ['Heb']),
    ('James', 'JAS', 'NT', ['Jas', 'Jm']),
    ('1 Peter', '1PE', 'NT', ['1 Pet', '1Pet', '1 Pe', '1Pe', 'I Peter', 'I Pet', 'First Peter',
                              '1 Pt', '1Pt']),
    ('2 Peter', '2PE', 'NT', ['2 Pet', '2Pet', '2 Pe', '2Pe', 'II Peter', 'II Pet', 'Second Peter',
                              '2 Pt', '2Pt']),
    ('1 John', '1JN', 'NT', ['1 Jn', '1Jn', '1 Jhn', '1Jhn', 'I John', 'I Jn', 'First John']),
    ('2 John', '2JN', 'NT', ['2 Jn', '2Jn', '2 Jhn', '2Jhn', 'II John', 'II Jn', 'Second John']),
    ('3 John', '3JN', 'NT', ['3 Jn', '3Jn', '3 Jhn', '3Jhn', 'III John', 'III Jn', 'Third John']),
    ('Jude', 'JUD', 'NT', ['Jud', 'Jd']),
    ('Revelation', 'REV', 'NT', ['Rev', 'Re', 'The Revelation', 'Apocalypse', 'The Apocalypse']),
]


# ============================================================================
# BIBLE EDITION DATA
# ============================================================================

# (abbreviation, title, catalog_id, licensed)
EDITION_TABLE: List[Tuple[str, str, int, bool]] = [
    ('AFV', "A Faithful Version", 4253, False),
    ('AMP', "Amplified Bible", 1588, True),
    ('AMPC', "Amplified Bible, Classic Edition", 8, False),
    ('ASV', "American Standard Version", 12, True),
    ('BOOKS', "The Books of the Bible NT", 31, False),
    ('BSB', "English: Berean Standard Bible", 3034, True),
    ('CEB', "Common English Bible", 37, False),
    ('CEV', "Contemporary English Version", 392, False),
    ('CEVDCI', "Contemporary English Version Interconfessional Edition", 303, False),
    ('CEVUK', "Contemporary English Version (Anglicised) 2012", 294, False),
    ('CJB', "Complete Jewish Bible", 1275, False),
    ('CPDV', "Catholic Public Domain Version", 42, True),
    ('CSB', "Christian Standard Bible", 1713, False),
    ('CSBA', "Christian Standard Bible Anglicised", 4124, False),
    ('DARBY', "Darby's Translation 1890", 478, False),
    ('DRC1752', "Douay-Rheims Challoner Revision 1752", 55, False),
    ('EASY', "EasyEnglish Bible 2024", 2079, True),
    ('EHV', "Evangelical Heritage Version - 2021", 4224, False),
    ('ERV', "Holy Bible: Easy-to-Read Version", 406, False),
    ('ESV', "English Standard Version 2025", 59, False),
    ('FBV', "Free Bible Version", 1932, True),
    ('FNVNT', "First Nations Version", 3633, False),
    ('GNBDC', "Good News Bible (British) with DC section 2017", 416, False),
    ('GNBDK', "Good News Bible (British) Catholic Edition 2017", 431, False),
    ('GNBUK', "Good News Bible (British Version) 2017", 296, False),
    ('GNT', "Good News Translation", 68, False),
    ('GNTD', "Good News Translation (US Version)", 69, False),
    ('GNV', "Geneva Bible", 2163, True),
    ('GW', "GOD'S WORD", 70, False),
    ('GWC', "St Paul from the Trenches 1916", 1047, False),
    ('HCSB', "Holman Christian Standard Bible", 72, False),
    ('ICB', "International Children's Bible", 1359, False),
    ('JUB', "Jubilee Bible", 1077, False),
    ('KJV', "King James Version", 1, False),
    ('KJVAAE', "King James Version with Apocrypha, American Edition", 546, False),
    ('KJVAE', "King James Version, American Edition", 547, False),
    ('LEB', "Lexham English Bible", 90, False),
    ('LSB', "Legacy Standard Bible", 3345, False),
    ('LSV', "Literal Standard Version", 2660, True),
    ('MEV', "Modern English Version", 1171, False),
    ('MP1562', "Metrical Psalms and Scripture Selections 1562 (Sternhold and Hopkins)", 4540, False),
    ('MP1650', "Psalms of David in Metre 1650 (Scottish Psalter)", 1365, False),
    ('MP1696', "Metrical Psalms and Scripture Selections 1696 (Brady & Tate)", 2593, False),
    ('MP1781', "Scottish Metrical Paraphrases 1781", 3051, False),
    ('MSG', "The Message", 97, False),
    ('NABRE', "New American Bible, revised edition", 463, False),
    ('NASB', "New American Standard Bible - NASB 1995", 100, True),
    ('NASB2020', "New American Standard Bible - NASB", 2692, True),
    ('NCV', "New Century Version", 105, False),
    ('NET', "New English Translation", 107, False),
    ('NIRV', "New International Reader's Version", 110, True),
    ('NIV', "New International Version", 111, True),
    ('NIVUK', "New International Version (Anglicised)", 113, True),
    ('NKJV', "New King James Version", 114, False),
    ('NLT', "New Living Translation", 116, False),
    ('NLTCE', "New Living Translation Catholic Edition", 4249, False),
    ('NMV', "New Messianic Version Bible", 2135, False),
    ('NRSV-CI', "New Revised Standard Version Catholic Interconfessional", 2015, False),
    ('NRSVUE', "New Revised Standard Version Updated Edition 2021", 3523, False),
    ('NTBNBL2025', "Benamanga", 4455, True),
    ('OYBCENGL', "The third line (in English) translating the meaning of each word in the Orthodox Yiddish Brit Chadashah (New Testament)", 3915, False),
    ('OYTNKHEG', "English word for word translation of Orthodox Yiddish Tanakh (OYTANAKH)", 4557, False),
    ('OYTORHEG', "Translation into English of Orthodox Yiddish Torah (OYTORAH)", 4070, False),
    ('PEV', "Plain English Version", 2530, True),
    ('RAD', "Radiate New Testament", 2753, False),
    ('RSV', "Revised Standard Version", 2020, False),
    ('RSV-C', "Revised Standard Version Old Tradition 1952", 2017, False),
    ('RSVCI', "Revised Standard Version", 3548, False),
    ('RV1885', "Revised Version 1885", 477, False),
    ('RV1895', "Revised Version with Apocrypha 1885, 1895", 1922, False),
    ('TCENT', "The Text-Critical English New Testament", 3427, True),
    ('TEG', "Isaiah 1830, 1842 (John Jones alias Ioan Tegid)", 3010, False),
    ('TLV', "Tree of Life Version", 314, False),
    ('TOJB2011', "The Orthodox Jewish Bible", 130, True),
    ('TPT', "The Passion Translation", 1849, True),
    ('TS2009', "The Scriptures 2009", 316, False),
    ('WBMS', "Wycliffe's Bible with Modern Spelling", 2407, False),
    ('WBTP', "Af\u0101 Wany\u025Bny\u025B wu Nug\xE9 W\xE0py\xF3\xF2", 4533, True),
    ('WEBBE', "World English Bible British Edition", 1204, True),
    ('WEBUS', "World English Bible, American English Edition, without Strong's Numbers", 206, True),
    ('WMB', "World Messianic Bible", 1209, True),
    ('WMBBE', "World Messianic Bible British Edition", 1207, True),
    ('YALL', "Y'all Version Bible", 4108, False),
    ('YLT98', "Young's Literal Translation 1898", 821, False),
]


# ============================================================================
# DEBUG LOGGING
# ============================================================================

def _debug_log(message: str, debug: bool = False, prefix: str = "[Canon]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


# ============================================================================
# NORMALIZATION
# ============================================================================

def normalize_name(name: str) -> str:
    """
    Normalize a book name or alias into its lookup key.

    Lowercases, removes periods, collapses internal whitespace and trims,
    so "1 Cor.", "1  cor" and " 1 COR " all become "1 cor".
    """
    normalized = name.lower().replace('.', '')
    return re.sub(r'\s+', ' ', normalized).strip()


def _alternation(names: List[str]) -> str:
    """Escape names and join them longest first into a regex alternation."""
    seen = set()
    unique: List[str] = []
    for name in names:
        key = name.casefold()
        if key not in seen:
            seen.add(key)
            unique.append(name)
    # Stable sort: equal-length names keep table order
    unique.sort(key=len, reverse=True)
    return '|'.join(re.escape(name) for name in unique)


# ============================================================================
# REGISTRY
# ============================================================================

class CanonRegistry:
    """
    Lookup tables for canonical books and Bible editions.

    Every book is registered under its normalized display name, its code and
    each of its aliases. Editions are registered under their upper-cased
    abbreviation. Lookups that miss return None; a miss is never an error.
    """

    def __init__(self,
                 book_table: Optional[List[Tuple[str, str, str, List[str]]]] = None,
                 edition_table: Optional[List[Tuple[str, str, int, bool]]] = None,
                 debug: bool = False):
        self.debug = debug
        self._books: Tuple[CanonicalBook, ...] = tuple(
            CanonicalBook(name=name, code=code, testament=testament, aliases=frozenset(aliases))
            for name, code, testament, aliases in (book_table or BOOK_TABLE)
        )
        self._editions: Tuple[BibleEdition, ...] = tuple(
            BibleEdition(abbreviation=abbr, title=title, catalog_id=catalog_id, licensed=licensed)
            for abbr, title, catalog_id, licensed in (edition_table or EDITION_TABLE)
        )

        self._book_lookup: Dict[str, CanonicalBook] = {}
        self._code_lookup: Dict[str, CanonicalBook] = {}
        for book in self._books:
            self._code_lookup[book.code] = book
            self._book_lookup[normalize_name(book.name)] = book
            self._book_lookup.setdefault(normalize_name(book.code), book)
            for alias in book.aliases:
                self._book_lookup[normalize_name(alias)] = book

        self._edition_lookup: Dict[str, BibleEdition] = {
            edition.abbreviation.upper(): edition for edition in self._editions
        }

        # Alternations are compiled on first use
        self._book_pattern: Optional[str] = None
        self._edition_pattern: Optional[str] = None

        _debug_log(f"Registered {len(self._books)} books under {len(self._book_lookup)} keys, "
                   f"{len(self._editions)} editions", self.debug)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def lookup_book(self, name: str) -> Optional[CanonicalBook]:
        """Find a book by display name, alias or code."""
        return self._book_lookup.get(normalize_name(name))

    def lookup_edition(self, symbol: str) -> Optional[BibleEdition]:
        """Find an edition by abbreviation, case-insensitively."""
        return self._edition_lookup.get(symbol.strip().upper())

    def get_book_by_code(self, code: str) -> Optional[CanonicalBook]:
        return self._code_lookup.get(code.strip().upper())

    def is_licensed(self, symbol: str) -> bool:
        """
        Whether an edition's text may be displayed.

        Editions missing from the table are treated as licensed; the verse
        service is the final authority for those.
        """
        edition = self.lookup_edition(symbol)
        return edition.licensed if edition else True

    def all_books(self) -> List[CanonicalBook]:
        return list(self._books)

    def books_by_testament(self, testament: str) -> List[CanonicalBook]:
        return [b for b in self._books if b.testament == testament.upper()]

    def all_editions(self) -> List[BibleEdition]:
        return list(self._editions)

    def all_book_names(self) -> List[str]:
        """Every display name and alias, in table order."""
        names: List[str] = []
        for book in self._books:
            names.extend(book.all_names())
        return names

    # ------------------------------------------------------------------
    # Regex alternations
    # ------------------------------------------------------------------

    def book_alternation_pattern(self) -> str:
        """
        Regex alternation over every book name and alias.

        Longer names come first so "1 Corinthians" is tried before "1 Cor".
        """
        if self._book_pattern is None:
            self._book_pattern = _alternation(self.all_book_names())
        return self._book_pattern

    def edition_alternation_pattern(self) -> str:
        """Regex alternation over every edition abbreviation, longest first."""
        if self._edition_pattern is None:
            self._edition_pattern = _alternation([e.abbreviation for e in self._editions])
        return self._edition_pattern
