#!/usr/bin/env python3
"""
Tests for the canon registry.

Covers:
- Book table completeness (66 books, testaments, unique codes)
- Alias normalization and lookup
- Edition lookup and licensing flags
- Longest-first alternation ordering
"""

import sys
import os
import re
import unittest

# Ensure src/python is on the path
sys.path.insert(0, os.path.dirname(__file__))

from canon_registry import (
    BOOK_TABLE,
    EDITION_TABLE,
    CanonRegistry,
    normalize_name,
)


# ============================================================================
# BOOK TABLE
# ============================================================================

class TestBookTable(unittest.TestCase):

    def setUp(self):
        self.registry = CanonRegistry()

    def test_has_66_books(self):
        self.assertEqual(len(self.registry.all_books()), 66)

    def test_testament_split(self):
        self.assertEqual(len(self.registry.books_by_testament('OT')), 39)
        self.assertEqual(len(self.registry.books_by_testament('nt')), 27)

    def test_codes_are_unique_three_characters(self):
        codes = [book.code for book in self.registry.all_books()]
        self.assertEqual(len(codes), len(set(codes)))
        for code in codes:
            self.assertEqual(len(code), 3, code)

    def test_no_alias_belongs_to_two_books(self):
        owners = {}
        for name, code, _, aliases in BOOK_TABLE:
            for alias in [name] + aliases:
                key = normalize_name(alias)
                self.assertEqual(owners.setdefault(key, code), code,
                                 f"'{alias}' is claimed by {owners[key]} and {code}")

    def test_first_and_last_books(self):
        books = self.registry.all_books()
        self.assertEqual(books[0].code, 'GEN')
        self.assertEqual(books[-1].code, 'REV')


# ============================================================================
# NORMALIZATION AND LOOKUP
# ============================================================================

class TestBookLookup(unittest.TestCase):

    def setUp(self):
        self.registry = CanonRegistry()

    def test_normalize_name(self):
        self.assertEqual(normalize_name("1 Cor."), "1 cor")
        self.assertEqual(normalize_name("  1   COR "), "1 cor")
        self.assertEqual(normalize_name("Song  of Solomon"), "song of solomon")

    def test_lookup_by_full_name(self):
        self.assertEqual(self.registry.lookup_book('John').code, 'JHN')
        self.assertEqual(self.registry.lookup_book('1 Corinthians').code, '1CO')

    def test_lookup_is_case_and_period_insensitive(self):
        self.assertEqual(self.registry.lookup_book('JOHN').code, 'JHN')
        self.assertEqual(self.registry.lookup_book('1 cor.').code, '1CO')
        self.assertEqual(self.registry.lookup_book('Gen.').code, 'GEN')

    def test_lookup_by_alias(self):
        self.assertEqual(self.registry.lookup_book('Jn').code, 'JHN')
        self.assertEqual(self.registry.lookup_book('Ps').code, 'PSA')
        self.assertEqual(self.registry.lookup_book('First Corinthians').code, '1CO')

    def test_lookup_by_code(self):
        self.assertEqual(self.registry.lookup_book('JHN').name, 'John')
        self.assertEqual(self.registry.get_book_by_code('jhn').name, 'John')

    def test_unknown_book_is_none(self):
        self.assertIsNone(self.registry.lookup_book('Hezekiah'))
        self.assertIsNone(self.registry.get_book_by_code('XYZ'))

    def test_all_names_starts_with_display_name(self):
        john = self.registry.get_book_by_code('JHN')
        self.assertEqual(john.all_names(), ['John', 'Jhn', 'Jn'])

    def test_all_book_names_includes_aliases(self):
        names = self.registry.all_book_names()
        self.assertIn('1 Corinthians', names)
        self.assertIn('1 Cor', names)
        self.assertIn('Jn', names)


# ============================================================================
# EDITIONS
# ============================================================================

class TestEditions(unittest.TestCase):

    def setUp(self):
        self.registry = CanonRegistry()

    def test_edition_table_is_unique(self):
        self.assertEqual(len(EDITION_TABLE), 84)
        abbreviations = [e.abbreviation for e in self.registry.all_editions()]
        ids = [e.catalog_id for e in self.registry.all_editions()]
        self.assertEqual(len(abbreviations), len(set(abbreviations)))
        self.assertEqual(len(ids), len(set(ids)))

    def test_lookup_edition_case_insensitive(self):
        niv = self.registry.lookup_edition(' niv ')
        self.assertEqual(niv.abbreviation, 'NIV')
        self.assertEqual(niv.catalog_id, 111)
        self.assertIn('International', niv.title)

    def test_unknown_edition(self):
        self.assertIsNone(self.registry.lookup_edition('XYZ'))

    def test_licensing(self):
        self.assertTrue(self.registry.is_licensed('NIV'))
        self.assertFalse(self.registry.is_licensed('ESV'))
        # Editions missing from the table are let through
        self.assertTrue(self.registry.is_licensed('XYZ'))

    def test_edition_to_dict(self):
        data = self.registry.lookup_edition('KJV').to_dict()
        self.assertEqual(data['catalogId'], 1)
        self.assertEqual(data['abbreviation'], 'KJV')


# ============================================================================
# ALTERNATIONS
# ============================================================================

class TestAlternation(unittest.TestCase):

    def setUp(self):
        self.registry = CanonRegistry()

    def test_longer_names_come_first(self):
        parts = self.registry.book_alternation_pattern().split('|')
        self.assertLess(parts.index(re.escape('1 Corinthians')), parts.index(re.escape('1 Cor')))
        self.assertLess(parts.index(re.escape('1 John')), parts.index(re.escape('John')))
        lengths = [len(p.replace('\\', '')) for p in parts]
        self.assertEqual(lengths, sorted(lengths, reverse=True))

    def test_alternation_is_cached(self):
        first = self.registry.book_alternation_pattern()
        self.assertIs(first, self.registry.book_alternation_pattern())

    def test_alternation_compiles(self):
        pattern = re.compile(r'^(?:' + self.registry.book_alternation_pattern() + r')$', re.IGNORECASE)
        self.assertTrue(pattern.match('1 Corinthians'))
        self.assertTrue(pattern.match('song of solomon'))

    def test_edition_alternation(self):
        parts = self.registry.edition_alternation_pattern().split('|')
        self.assertLess(parts.index('NIVUK'), parts.index('NIV'))
        self.assertEqual(len(parts), 84)


if __name__ == '__main__':
    unittest.main()
