#!/usr/bin/env python3
"""Tests for tagger configuration, validation and exclusion rule parsing."""

import sys
import os
import unittest

# Ensure src/python is on the path
sys.path.insert(0, os.path.dirname(__file__))

from reference_parser import ScriptureReference
from scanner_config import (
    DEFAULT_PROXY_URL,
    ConfigError,
    TaggerConfig,
    build_reference_url,
    create_config,
    merge_config,
    parse_exclude_selectors,
    validate_config,
)


class TestDefaults(unittest.TestCase):

    def test_default_values(self):
        config = TaggerConfig()
        self.assertEqual(config.proxy_url, DEFAULT_PROXY_URL)
        self.assertEqual(config.behavior, 'both')
        self.assertEqual(config.trigger, 'hover')
        self.assertEqual(config.hover_delay, 500)
        self.assertEqual(config.default_version, 'NIV')
        self.assertEqual(config.reference_class, 'verse-reference')
        self.assertIsNone(config.exclude_predicate)
        self.assertFalse(config.debug)

    def test_defaults_validate(self):
        validate_config(TaggerConfig())

    def test_behavior_flags(self):
        self.assertTrue(TaggerConfig(behavior='link-only').renders_links)
        self.assertFalse(TaggerConfig(behavior='link-only').shows_modal)
        self.assertFalse(TaggerConfig(behavior='modal-only').renders_links)
        self.assertTrue(TaggerConfig(behavior='both').shows_modal)

    def test_to_dict(self):
        data = TaggerConfig().to_dict()
        self.assertEqual(data['proxyUrl'], DEFAULT_PROXY_URL)
        self.assertTrue(data['accessibility']['keyboardNav'])
        self.assertNotIn('autoScan', data)

    def test_only_documented_options(self):
        with self.assertRaises(ConfigError):
            create_config(auto_scan=False)


class TestValidation(unittest.TestCase):

    def test_missing_proxy_url(self):
        with self.assertRaises(ConfigError):
            create_config(proxy_url='')

    def test_invalid_proxy_url(self):
        with self.assertRaises(ConfigError):
            create_config(proxy_url='not a url')
        with self.assertRaises(ConfigError):
            create_config(proxy_url='ftp://example.com')

    def test_invalid_enums(self):
        with self.assertRaises(ConfigError):
            create_config(behavior='popup')
        with self.assertRaises(ConfigError):
            create_config(trigger='focus')
        with self.assertRaises(ConfigError):
            create_config(color_scheme='purple')

    def test_hover_delay_bounds(self):
        create_config(hover_delay=0)
        create_config(hover_delay=5000)
        with self.assertRaises(ConfigError):
            create_config(hover_delay=-1)
        with self.assertRaises(ConfigError):
            create_config(hover_delay=5001)

    def test_timeout_must_be_positive(self):
        with self.assertRaises(ConfigError):
            create_config(timeout=0)

    def test_predicate_must_be_callable(self):
        with self.assertRaises(ConfigError):
            create_config(exclude_predicate='nope')

    def test_config_error_is_value_error(self):
        self.assertTrue(issubclass(ConfigError, ValueError))


class TestMerge(unittest.TestCase):

    def test_merge_returns_new_config(self):
        base = TaggerConfig()
        merged = merge_config(base, default_version='ESV', debug=True)
        self.assertEqual(merged.default_version, 'ESV')
        self.assertTrue(merged.debug)
        self.assertEqual(base.default_version, 'NIV')

    def test_unknown_option(self):
        with self.assertRaises(ConfigError):
            merge_config(TaggerConfig(), colour='red')


class TestExclusionRules(unittest.TestCase):

    def test_default_selectors(self):
        rules = parse_exclude_selectors(TaggerConfig().exclude_selectors)
        self.assertIn('code', rules.tags)
        self.assertIn('a', rules.tags)
        self.assertIn('no-verse-tagging', rules.classes)
        self.assertIsNone(rules.complex_selector)

    def test_split_by_kind(self):
        rules = parse_exclude_selectors("CODE, .no-tag, #footer, div > p, , [data-skip]")
        self.assertEqual(rules.tags, frozenset({'code'}))
        self.assertEqual(rules.classes, frozenset({'no-tag'}))
        self.assertEqual(rules.ids, frozenset({'footer'}))
        self.assertEqual(rules.complex_selector, 'div > p, [data-skip]')

    def test_empty(self):
        rules = parse_exclude_selectors('')
        self.assertEqual(rules.tags, frozenset())
        self.assertIsNone(rules.complex_selector)


class TestReferenceUrl(unittest.TestCase):

    def test_uses_reference_edition(self):
        ref = ScriptureReference(text='John 3:16 ESV', book='JHN', chapter=3, verses=[16], version='ESV')
        self.assertEqual(build_reference_url(ref, TaggerConfig()),
                         "https://www.bible.com/bible/ESV/JHN.3.16")

    def test_falls_back_to_default_version(self):
        ref = ScriptureReference(text='Mt 5:3-12', book='MAT', chapter=5, verses=list(range(3, 13)))
        config = TaggerConfig(link_format="https://example.org/{book}/{chapter}/{verses}?v={version}")
        self.assertEqual(build_reference_url(ref, config), "https://example.org/MAT/5/3-12?v=NIV")


if __name__ == '__main__':
    unittest.main()
