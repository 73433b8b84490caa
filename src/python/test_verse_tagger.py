#!/usr/bin/env python3
"""Tests for the VerseTagger facade: scanning, config updates and verse resolution."""

import sys
import os
import unittest
from unittest.mock import MagicMock, patch

# Ensure src/python is on the path
sys.path.insert(0, os.path.dirname(__file__))

from document_model import create_document_root, create_element
from reference_parser import ScriptureReference
from scanner_config import ConfigError, TaggerConfig, create_config
from verse_client import ApiError, VerseClient, VerseContent, VerseData
from verse_tagger import LICENSING_MESSAGE, VerseTagger


def _reference(version=None, verses=(16,)):
    return ScriptureReference(text='John 3:16', book='JHN', chapter=3, verses=list(verses),
                              version=version)


def _content():
    return VerseContent(book='JHN', chapter=3, verses=[VerseData(16, 'For God so loved')],
                        version='NIV', reference='John 3:16')


class TestScanning(unittest.TestCase):

    def setUp(self):
        self.tagger = VerseTagger(client=MagicMock(spec=VerseClient))

    def test_scan_accumulates(self):
        root = create_document_root([create_element('p', "Read John 3:16")])
        self.assertEqual(len(self.tagger.scan(root)), 1)

        root.append(create_element('p', "and Romans 8:28"))
        self.assertEqual([r.book_code for r in self.tagger.scan(root)], ['ROM'])
        self.assertEqual([r.book_code for r in self.tagger.get_scanned_references()], ['JHN', 'ROM'])

    def test_rescan_resets_results(self):
        root = create_document_root([create_element('p', "Read John 3:16")])
        self.tagger.scan(root)

        # Existing annotations stay in place, so nothing new is found
        self.assertEqual(self.tagger.rescan(root), [])
        self.assertEqual(self.tagger.get_scanned_references(), [])

    def test_update_config_reconsiders_skipped_content(self):
        root = create_document_root([create_element('aside', "John 3:16")])
        self.tagger.update_config(exclude_selectors="aside")
        self.assertEqual(self.tagger.scan(root), [])

        self.tagger.update_config(exclude_selectors="code")
        self.assertEqual(len(self.tagger.scan(root)), 1)

    def test_invalid_update_keeps_config(self):
        with self.assertRaises(ConfigError):
            self.tagger.update_config(hover_delay=99999)
        self.assertEqual(self.tagger.get_config().hover_delay, 500)

    def test_invalid_initial_config(self):
        with self.assertRaises(ConfigError):
            VerseTagger(TaggerConfig(behavior='sideways'))

    def test_update_config_reaches_client(self):
        self.tagger.update_config(default_version='ESV', timeout=3)
        kwargs = self.tagger.client.update_config.call_args.kwargs
        self.assertEqual(kwargs['default_version'], 'ESV')
        self.assertEqual(kwargs['timeout'], 3)

    def test_shared_registry(self):
        self.assertIs(self.tagger.tokenizer.registry, self.tagger.registry)
        self.assertIs(self.tagger.scanner.tokenizer, self.tagger.tokenizer)

    def test_destroy(self):
        root = create_document_root([create_element('p', "Read John 3:16")])
        self.tagger.scan(root)
        self.tagger.destroy()

        self.assertEqual(self.tagger.get_scanned_references(), [])
        self.assertEqual(self.tagger.get_cache_stats()['size'], 0)
        with self.assertRaises(RuntimeError):
            self.tagger.scan(root)


class TestResolve(unittest.TestCase):

    def setUp(self):
        self.client = MagicMock(spec=VerseClient)
        self.client.fetch_verse.return_value = _content()
        self.tagger = VerseTagger(create_config(default_version='NIV'), client=self.client)

    def test_fetches_and_caches(self):
        first = self.tagger.resolve(_reference())
        second = self.tagger.resolve(_reference())

        self.assertIs(first, second)
        self.client.fetch_verse.assert_called_once()
        self.assertEqual(self.tagger.get_cache_stats(), {'size': 1, 'keys': ['jhn_3_16_niv']})

    def test_cache_key_includes_edition(self):
        self.tagger.resolve(_reference())
        self.tagger.resolve(_reference(version='NASB'))
        self.assertEqual(self.client.fetch_verse.call_count, 2)
        self.assertIn('jhn_3_16_nasb', self.tagger.get_cache_stats()['keys'])

    def test_clear_cache(self):
        self.tagger.resolve(_reference())
        self.tagger.clear_cache()
        self.tagger.resolve(_reference())
        self.assertEqual(self.client.fetch_verse.call_count, 2)

    def test_unlicensed_edition_skips_network(self):
        content = self.tagger.resolve(_reference(version='ESV'))

        self.client.fetch_verse.assert_not_called()
        self.assertTrue(content.is_error)
        self.assertEqual(content.content, LICENSING_MESSAGE)
        self.assertEqual(content.version, 'ESV')
        self.assertEqual(content.reference, 'John 3:16 ESV')

    def test_unknown_edition_is_fetched(self):
        self.tagger.update_config(default_version='XYZ')
        self.tagger.resolve(_reference())
        self.client.fetch_verse.assert_called_once()

    def test_api_error_becomes_error_content(self):
        self.client.fetch_verse.side_effect = ApiError("Rate limit exceeded. Please try again later.", 429)

        with patch('verse_tagger._debug_log'):
            content = self.tagger.resolve(_reference())

        self.assertTrue(content.is_error)
        self.assertIn('Rate limit', content.content)
        self.assertEqual(self.tagger.get_cache_stats()['size'], 0)


if __name__ == '__main__':
    unittest.main()
