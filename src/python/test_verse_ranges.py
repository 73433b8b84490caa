#!/usr/bin/env python3
"""Tests for verse range expansion and formatting."""

import sys
import os
import unittest
from itertools import combinations

# Ensure src/python is on the path
sys.path.insert(0, os.path.dirname(__file__))

from verse_ranges import (
    MAX_VERSE,
    expand_verse_range,
    format_verse_range,
    is_valid_verse_range,
)


class TestExpandVerseRange(unittest.TestCase):

    def test_single_verse(self):
        self.assertEqual(expand_verse_range('16'), [16])

    def test_simple_range(self):
        self.assertEqual(expand_verse_range('3-12'), list(range(3, 13)))

    def test_mixed_list(self):
        self.assertEqual(expand_verse_range('1,3-5,7'), [1, 3, 4, 5, 7])
        self.assertEqual(expand_verse_range('1-3, 5-7'), [1, 2, 3, 5, 6, 7])

    def test_unicode_dashes(self):
        self.assertEqual(expand_verse_range('1–3'), [1, 2, 3])  # en dash
        self.assertEqual(expand_verse_range('1—3'), [1, 2, 3])  # em dash

    def test_duplicates_and_order(self):
        self.assertEqual(expand_verse_range('5,1-3,2'), [1, 2, 3, 5])

    def test_invalid_pieces_are_dropped(self):
        self.assertEqual(expand_verse_range('5-3'), [])
        self.assertEqual(expand_verse_range('0'), [])
        self.assertEqual(expand_verse_range('0-2'), [])
        self.assertEqual(expand_verse_range('abc'), [])
        self.assertEqual(expand_verse_range('1-2-3'), [])
        # The valid piece survives its invalid neighbor
        self.assertEqual(expand_verse_range('5-3,7'), [7])

    def test_verses_past_longest_chapter_are_dropped(self):
        self.assertEqual(len(expand_verse_range(f'1-{MAX_VERSE}')), MAX_VERSE)
        self.assertEqual(expand_verse_range(f'1-{MAX_VERSE + 1}'), [])
        self.assertEqual(expand_verse_range(f'{MAX_VERSE + 1}'), [])
        self.assertEqual(expand_verse_range('1-20000000'), [])
        self.assertEqual(expand_verse_range('2,1-20000000'), [2])
        self.assertEqual(expand_verse_range('1-' + '9' * 5000), [])

    def test_non_ascii_digits_rejected(self):
        self.assertEqual(expand_verse_range('\u0661\u0666'), [])  # Arabic-Indic 16
        self.assertEqual(expand_verse_range('\uff11-\uff13'), [])  # fullwidth 1-3
        self.assertEqual(expand_verse_range('\u00b2'), [])  # superscript two

    def test_empty(self):
        self.assertEqual(expand_verse_range(''), [])
        self.assertEqual(expand_verse_range(' , '), [])


class TestFormatVerseRange(unittest.TestCase):

    def test_contiguous_run(self):
        self.assertEqual(format_verse_range(range(3, 13)), '3-12')

    def test_mixed_runs(self):
        self.assertEqual(format_verse_range([1, 3, 4, 5, 7]), '1,3-5,7')

    def test_single(self):
        self.assertEqual(format_verse_range([16]), '16')

    def test_unsorted_with_duplicates(self):
        self.assertEqual(format_verse_range([7, 1, 2, 2, 3]), '1-3,7')

    def test_empty(self):
        self.assertEqual(format_verse_range([]), '')

    def test_expand_inverts_format(self):
        # Every non-empty subset of 1..10
        numbers = range(1, 11)
        for size in range(1, len(numbers) + 1):
            for subset in combinations(numbers, size):
                verses = list(subset)
                self.assertEqual(expand_verse_range(format_verse_range(verses)), verses)

    def test_expand_inverts_format_at_bounds(self):
        for verses in ([MAX_VERSE], [1, MAX_VERSE], list(range(MAX_VERSE - 3, MAX_VERSE + 1))):
            self.assertEqual(expand_verse_range(format_verse_range(verses)), verses)


class TestIsValidVerseRange(unittest.TestCase):

    def test_valid(self):
        self.assertTrue(is_valid_verse_range('1-3'))
        self.assertTrue(is_valid_verse_range('5-3,7'))

    def test_invalid(self):
        self.assertFalse(is_valid_verse_range(''))
        self.assertFalse(is_valid_verse_range('0'))
        self.assertFalse(is_valid_verse_range('5-3'))
        self.assertFalse(is_valid_verse_range(None))


if __name__ == '__main__':
    unittest.main()
